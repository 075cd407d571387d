"""
Analytics Domain Entities
=========================

Pure Python domain entities for QA analytics.

Interaction is the raw input; everything else is derived and owned by the
aggregation pass that produced it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from qa_insights.analytics.domain.value_objects import (
    SLA_LIMIT_MINUTES,
    OverallScoreCalculator,
    QualityScores,
    ResponseEvent,
    Sentiment,
    SentimentDistribution,
    SentimentScores,
    compliance_percentage,
)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Interaction:
    """
    One QA-reviewed employee-to-client exchange.

    Several interactions may share a ticket_id.
    """

    ticket_id: str
    employee: str
    created_date: datetime
    scores: QualityScores = field(default_factory=QualityScores)
    sentiment: Optional[Sentiment] = None
    sentiment_scores: SentimentScores = field(default_factory=SentimentScores)
    response_times: List[ResponseEvent] = field(default_factory=list)
    subject: Optional[str] = None

    def __post_init__(self):
        self.created_date = ensure_utc(self.created_date)

    @property
    def overall_score(self) -> float:
        return OverallScoreCalculator.combine(self.scores)

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "employee": self.employee,
            "created_date": self.created_date.isoformat(),
            "sentiment": self.sentiment.value if self.sentiment else None,
            "sentiment_scores": self.sentiment_scores.to_dict(),
            "scores": self.scores.to_dict(),
            "response_times": [r.to_dict() for r in self.response_times],
            "subject": self.subject,
            "overall_score": self.overall_score,
        }


@dataclass
class EmployeeStat:
    """
    Per-employee aggregate, rebuilt from scratch on every pass.

    total_tickets is the number of interactions folded in, not the number
    of distinct tickets.
    """

    employee: str
    total_tickets: int = 0
    avg_scores: QualityScores = field(default_factory=QualityScores)
    sentiment_distribution: SentimentDistribution = field(default_factory=SentimentDistribution)
    sla_violations: int = 0

    @property
    def overall_score(self) -> float:
        return OverallScoreCalculator.combine(self.avg_scores)

    @property
    def sla_compliance(self) -> float:
        return compliance_percentage(self.total_tickets, self.sla_violations)

    def to_dict(self) -> dict:
        return {
            "employee": self.employee,
            "total_tickets": self.total_tickets,
            "avg_scores": self.avg_scores.to_dict(),
            "sentiment_distribution": self.sentiment_distribution.to_dict(),
            "sla_violations": self.sla_violations,
            "overall_score": self.overall_score,
            "sla_compliance": self.sla_compliance,
        }


@dataclass(frozen=True)
class SLAInteraction:
    """One employee-to-client response event checked against the SLA limit."""

    ticket_id: str
    employee: str
    response_time: int
    raw_response_time: str
    is_violation: bool
    created_date: datetime
    sla_limit: int = SLA_LIMIT_MINUTES

    @property
    def dedup_key(self) -> tuple:
        """Events sharing this key describe the same logged response."""
        return (self.ticket_id, self.employee, self.raw_response_time)

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "employee": self.employee,
            "response_time": self.response_time,
            "raw_response_time": self.raw_response_time,
            "is_violation": self.is_violation,
            "sla_limit": self.sla_limit,
            "created_date": self.created_date.isoformat(),
        }


@dataclass(frozen=True)
class TopPerformer:
    employee: str
    score: float
    total_interactions: int

    def to_dict(self) -> dict:
        return {
            "employee": self.employee,
            "score": self.score,
            "total_interactions": self.total_interactions,
        }


@dataclass
class EmployeeWeekDetail:
    """An employee's activity within one weekly bucket."""

    employee: str
    total_interactions: int
    ticket_ids: List[str]
    avg_score: float
    sentiment_distribution: SentimentDistribution
    sla_violations: int

    @property
    def unique_tickets(self) -> int:
        return len(self.ticket_ids)

    def to_dict(self) -> dict:
        return {
            "employee": self.employee,
            "total_interactions": self.total_interactions,
            "unique_tickets": self.unique_tickets,
            "ticket_ids": list(self.ticket_ids),
            "avg_score": self.avg_score,
            "sentiment_distribution": self.sentiment_distribution.to_dict(),
            "sla_violations": self.sla_violations,
        }


@dataclass
class WeeklyBucket:
    """
    Aggregates for one Sunday-aligned calendar week.

    daily_tickets and daily_scores always hold seven slots, Sunday first.
    """

    week_start: date
    week_end: date
    total_interactions: int = 0
    unique_tickets: int = 0
    avg_score: float = 0.0
    sla_violations: int = 0
    sla_events: int = 0
    sentiment_distribution: SentimentDistribution = field(default_factory=SentimentDistribution)
    top_performers: List[TopPerformer] = field(default_factory=list)
    employee_details: List[EmployeeWeekDetail] = field(default_factory=list)
    daily_tickets: List[int] = field(default_factory=lambda: [0] * 7)
    daily_scores: List[float] = field(default_factory=lambda: [0.0] * 7)

    @property
    def sla_compliance(self) -> float:
        return compliance_percentage(self.sla_events, self.sla_violations)

    def to_dict(self) -> dict:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "total_interactions": self.total_interactions,
            "unique_tickets": self.unique_tickets,
            "avg_score": self.avg_score,
            "sla_violations": self.sla_violations,
            "sla_events": self.sla_events,
            "sla_compliance": self.sla_compliance,
            "sentiment_distribution": self.sentiment_distribution.to_dict(),
            "top_performers": [p.to_dict() for p in self.top_performers],
            "employee_details": [d.to_dict() for d in self.employee_details],
            "daily_tickets": list(self.daily_tickets),
            "daily_scores": list(self.daily_scores),
        }


@dataclass
class TicketSummary:
    """All interactions recorded under one ticket_id, summarized."""

    ticket_id: str
    subject: Optional[str]
    interaction_count: int
    employees: List[str]
    first_created: datetime
    last_created: datetime
    avg_score: float
    sentiment_distribution: SentimentDistribution

    @property
    def unique_employees(self) -> int:
        return len(self.employees)

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "subject": self.subject,
            "interaction_count": self.interaction_count,
            "employees": list(self.employees),
            "unique_employees": self.unique_employees,
            "first_created": self.first_created.isoformat(),
            "last_created": self.last_created.isoformat(),
            "avg_score": self.avg_score,
            "sentiment_distribution": self.sentiment_distribution.to_dict(),
        }


@dataclass
class TeamOverview:
    """Team-wide totals and averages for a dashboard pass."""

    total_interactions: int = 0
    unique_tickets: int = 0
    employee_count: int = 0
    sla_violations: int = 0
    sla_events: int = 0
    team_avg_score: float = 0.0
    top_performers: List[TopPerformer] = field(default_factory=list)
    criterion_averages: Dict[str, float] = field(default_factory=dict)
    sentiment_distribution: SentimentDistribution = field(default_factory=SentimentDistribution)

    @property
    def sla_compliance(self) -> float:
        return compliance_percentage(self.sla_events, self.sla_violations)

    def to_dict(self) -> dict:
        return {
            "total_interactions": self.total_interactions,
            "unique_tickets": self.unique_tickets,
            "employee_count": self.employee_count,
            "sla_violations": self.sla_violations,
            "sla_events": self.sla_events,
            "sla_compliance": self.sla_compliance,
            "team_avg_score": self.team_avg_score,
            "top_performers": [p.to_dict() for p in self.top_performers],
            "criterion_averages": dict(self.criterion_averages),
            "sentiment_distribution": self.sentiment_distribution.to_dict(),
        }


class InsightKind(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Insight:
    """A rule-based observation with a suggested action."""

    kind: InsightKind
    title: str
    description: str
    action: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "description": self.description,
            "action": self.action,
        }


@dataclass(frozen=True)
class DailyTrend:
    """One calendar day (UTC) of the trailing activity series."""

    day: date
    interactions: int = 0
    sla_compliance: float = 0.0
    avg_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "interactions": self.interactions,
            "sla_compliance": self.sla_compliance,
            "avg_score": self.avg_score,
        }
