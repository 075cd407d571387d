"""
Analytics Application Services
==============================

Application services orchestrate the domain aggregation passes and
coordinate between the interaction store and the scoring configuration.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from qa_insights.analytics.application.dto import IngestResponse, InteractionRecord
from qa_insights.analytics.domain import (
    DailyTrend,
    EmployeeFilter,
    EmployeeStat,
    Insight,
    InsightGenerator,
    Interaction,
    InteractionSearch,
    ScoreAggregator,
    ScoringConfig,
    SLAEvaluator,
    SLAInteraction,
    TeamOverview,
    TeamOverviewCalculator,
    TicketSummarizer,
    TicketSummary,
    TrendCalculator,
    WeeklyBucket,
    WeeklyRollup,
)
from qa_insights.core import DataAccessException, ResourceNotFoundException
from qa_insights.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IInteractionRepository(ABC):
    """
    Interface for interaction data access.

    Implementations raise DataAccessException when the store cannot be read.
    """

    @abstractmethod
    async def list_all(self) -> List[Interaction]:
        """Fetch every interaction."""

    @abstractmethod
    async def list_by_employee(self, employee: str) -> List[Interaction]:
        """Fetch interactions handled by one employee."""

    @abstractmethod
    async def list_by_responder(self, employee: str) -> List[Interaction]:
        """Fetch interactions carrying at least one response logged by ``employee``."""

    @abstractmethod
    async def list_by_ticket(self, ticket_id: str) -> List[Interaction]:
        """Fetch interactions recorded under one ticket."""

    @abstractmethod
    async def add_many(self, interactions: Sequence[Interaction]) -> int:
        """Store interactions; returns the number stored."""


class IScoringConfigProvider(ABC):
    """Interface for scoring configuration access."""

    @abstractmethod
    def get_config(self) -> ScoringConfig:
        """Get current scoring configuration."""


# ========== Snapshot ==========

@dataclass(frozen=True)
class DashboardSnapshot:
    """Immutable result of one refresh pass over the allowed interactions."""
    sequence: int
    generated_at: datetime
    interactions: Tuple[Interaction, ...]
    employee_stats: Tuple[EmployeeStat, ...]
    sla_events: Tuple[SLAInteraction, ...]
    overview: TeamOverview
    insights: Tuple[Insight, ...]
    available_weeks: Tuple[date, ...]


# ========== Application Services ==========

class DashboardService:
    """
    Computes and serves dashboard snapshots.

    Each refresh() takes a sequence number. A finished pass is published only
    if no later-started pass has already been published, so the most recent
    fetch wins regardless of completion order. invalidate() also retires
    every pass started before it. A failed fetch leaves the current snapshot
    untouched.
    """

    def __init__(
        self,
        repository: IInteractionRepository,
        config_provider: IScoringConfigProvider
    ):
        self._repository = repository
        self._config_provider = config_provider
        self._snapshot: Optional[DashboardSnapshot] = None
        self._issued = 0
        self._published = 0
        self._invalidated_at = 0

    @property
    def snapshot(self) -> Optional[DashboardSnapshot]:
        return self._snapshot

    def _load_config(self) -> ScoringConfig:
        config = self._config_provider.get_config()
        if not config.allowed_employees:
            logger.warning("Employee allow-list is empty; no interactions will be aggregated")
        return config

    async def refresh(self) -> DashboardSnapshot:
        """
        Fetch all interactions and recompute every aggregate.

        Raises:
            DataAccessException: the store could not be read
        """
        self._issued += 1
        sequence = self._issued
        logger.info("Snapshot refresh started", extra={"sequence": sequence})

        try:
            with log_latency(logger, "fetch_interactions", sequence=sequence):
                interactions = await self._repository.list_all()
        except DataAccessException as e:
            logger.error(
                "Snapshot refresh failed; keeping previous snapshot",
                extra={
                    "sequence": sequence,
                    "error": e.message,
                    "has_previous": self._snapshot is not None
                }
            )
            raise

        snapshot = self._build_snapshot(sequence, interactions)

        if sequence < self._published or sequence <= self._invalidated_at:
            logger.info(
                "Discarding superseded snapshot",
                extra={
                    "sequence": sequence,
                    "published": self._published,
                    "invalidated_at": self._invalidated_at
                }
            )
            if self._snapshot is not None:
                return self._snapshot
            return await self.refresh()

        self._snapshot = snapshot
        self._published = sequence
        logger.info(
            "Snapshot refresh complete",
            extra={
                "sequence": sequence,
                "fetched": len(interactions),
                "interactions": len(snapshot.interactions),
                "employees": len(snapshot.employee_stats),
                "sla_events": len(snapshot.sla_events),
                "sla_violations": snapshot.overview.sla_violations
            }
        )
        return snapshot

    def _build_snapshot(self, sequence: int, interactions: List[Interaction]) -> DashboardSnapshot:
        config = self._load_config()
        allowed_employees = config.allowed_employees
        allowed = EmployeeFilter.apply(interactions, allowed_employees)

        stats = ScoreAggregator.aggregate(allowed, allowed_employees)
        events = SLAEvaluator.evaluate(allowed)
        overview = TeamOverviewCalculator.compute(stats, events, allowed)
        insights = InsightGenerator.generate(overview, stats, config.insight_thresholds)

        return DashboardSnapshot(
            sequence=sequence,
            generated_at=datetime.now(timezone.utc),
            interactions=tuple(allowed),
            employee_stats=tuple(stats),
            sla_events=tuple(events),
            overview=overview,
            insights=tuple(insights),
            available_weeks=tuple(WeeklyRollup.available_weeks(allowed)),
        )

    def invalidate(self) -> None:
        """
        Drop the current snapshot so the next read recomputes it.

        Passes already in flight were fetched before the change and are not
        allowed to publish.
        """
        self._snapshot = None
        self._invalidated_at = self._issued

    async def get_snapshot(self) -> DashboardSnapshot:
        """Current snapshot, computing one on first use."""
        if self._snapshot is None:
            return await self.refresh()
        return self._snapshot

    async def employee_stats(self) -> List[EmployeeStat]:
        return list((await self.get_snapshot()).employee_stats)

    async def sla_events(self, violations_only: bool = False) -> List[SLAInteraction]:
        events = list((await self.get_snapshot()).sla_events)
        if violations_only:
            return SLAEvaluator.violations(events)
        return events

    async def available_weeks(self) -> List[date]:
        return list((await self.get_snapshot()).available_weeks)

    async def weekly_report(
        self,
        week_start: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> WeeklyBucket:
        """
        Weekly bucket for ``week_start``.

        Defaults to the most recent week with data, or to the week containing
        ``now`` when there is no data at all.
        """
        snapshot = await self.get_snapshot()
        if week_start is None:
            if snapshot.available_weeks:
                week_start = snapshot.available_weeks[0]
            else:
                week_start = WeeklyRollup.week_start_for(now or datetime.now(timezone.utc))

        with log_latency(logger, "weekly_rollup", week_start=str(week_start)):
            return WeeklyRollup.compute(snapshot.interactions, week_start)

    async def daily_trend(self, now: Optional[datetime] = None) -> List[DailyTrend]:
        """Trailing seven-day series ending today (UTC), oldest first."""
        snapshot = await self.get_snapshot()
        return TrendCalculator.trailing_days(snapshot.interactions, now or datetime.now(timezone.utc))

    async def employee_detail(self, employee: str) -> EmployeeStat:
        """
        Re-derive one employee's stats from a per-employee fetch.

        Scores and sentiment come from the interactions the employee owns.
        SLA violations are counted over every allowed interaction carrying a
        reply by the employee, which includes replies logged on colleagues'
        interactions, so the result matches the full-list aggregation.

        Raises:
            ResourceNotFoundException: employee not allowed or without interactions
        """
        allowed_employees = self._load_config().allowed_employees
        if employee not in allowed_employees:
            raise ResourceNotFoundException("Employee", employee)

        owned = await self._repository.list_by_employee(employee)
        stats = ScoreAggregator.aggregate(owned, [employee])
        if not stats:
            raise ResourceNotFoundException("Employee", employee)

        answered = EmployeeFilter.apply(
            await self._repository.list_by_responder(employee), allowed_employees
        )
        stat = stats[0]
        stat.sla_violations = SLAEvaluator.violations_for(SLAEvaluator.evaluate(answered), employee)
        return stat

    async def ticket_detail(self, ticket_id: str) -> Tuple[TicketSummary, List[Interaction]]:
        """
        Summary and chronological interactions for one ticket.

        Raises:
            ResourceNotFoundException: no allowed interactions under ticket_id
        """
        interactions = EmployeeFilter.apply(
            await self._repository.list_by_ticket(ticket_id),
            self._load_config().allowed_employees
        )
        if not interactions:
            raise ResourceNotFoundException("Ticket", ticket_id)

        summary = TicketSummarizer.summarize_ticket(ticket_id, interactions)
        return summary, sorted(interactions, key=lambda i: i.created_date)

    async def search(self, query: str) -> List[Interaction]:
        return InteractionSearch.search((await self.get_snapshot()).interactions, query)

    async def ticket_summaries(self, query: str = "") -> List[TicketSummary]:
        return TicketSummarizer.summarize(await self.search(query))


class IngestionService:
    """Validates raw interaction records and stores the valid ones."""

    def __init__(self, repository: IInteractionRepository):
        self._repository = repository

    async def ingest(self, records: List[Dict[str, Any]]) -> IngestResponse:
        """
        Store a batch of raw records.

        Each record is validated on its own; invalid records are counted and
        reported without blocking the rest of the batch.

        Raises:
            DataAccessException: the valid records could not be stored
        """
        valid: List[Interaction] = []
        errors: List[str] = []

        for index, raw in enumerate(records):
            try:
                valid.append(InteractionRecord.model_validate(raw).to_domain())
            except ValidationError as e:
                label = raw.get("ticket_id") if isinstance(raw, dict) else None
                fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
                errors.append(f"record {index} ({label or 'unknown ticket'}): invalid {fields}")

        created = await self._repository.add_many(valid) if valid else 0

        logger.info(
            "Interaction ingestion complete",
            extra={
                "interactions_created": created,
                "interactions_failed": len(errors)
            }
        )

        return IngestResponse(created=created, failed=len(errors), errors=errors)
