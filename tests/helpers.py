"""Builders and test doubles shared by the test modules."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from qa_insights.analytics.application import IInteractionRepository, IScoringConfigProvider
from qa_insights.analytics.domain import (
    EMPLOYEE_TO_CLIENT,
    CORE_CRITERIA,
    Interaction,
    QualityScores,
    ResponseEvent,
    ScoringConfig,
    Sentiment,
)
from qa_insights.core import DataAccessException

ALLOWED = ["Sajni V", "Nithin V P", "Abin Joseph", "Bency Benny"]


def at(value: str) -> datetime:
    """Parse an ISO timestamp; naive strings are read as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def core_scores(value: float, **overrides: float) -> QualityScores:
    """Every core criterion at ``value``, contextual at 0, plus overrides."""
    data: Dict[str, float] = {c.value: value for c in CORE_CRITERIA}
    data.update(overrides)
    return QualityScores.from_mapping(data)


def reply(by: str, elapsed: str, response_type: str = EMPLOYEE_TO_CLIENT) -> ResponseEvent:
    return ResponseEvent(response_by=by, response_time=elapsed, response_type=response_type)


def make_interaction(
    ticket_id: str = "TCK-1",
    employee: str = "Sajni V",
    created: str = "2024-01-15T10:00:00+00:00",
    scores: Optional[QualityScores] = None,
    sentiment: Optional[str] = None,
    responses: Sequence[ResponseEvent] = (),
    subject: Optional[str] = None,
) -> Interaction:
    return Interaction(
        ticket_id=ticket_id,
        employee=employee,
        created_date=at(created),
        scores=scores if scores is not None else core_scores(8.0),
        sentiment=Sentiment.parse(sentiment),
        response_times=list(responses),
        subject=subject,
    )


class InMemoryInteractionRepository(IInteractionRepository):
    """
    Repository double.

    Set ``fail`` to simulate an unreachable store. Each event appended to
    ``gates`` holds one list_all() call after it has read the data.
    """

    def __init__(self, interactions: Optional[List[Interaction]] = None):
        self.interactions: List[Interaction] = list(interactions or [])
        self.fail = False
        self.gates: List[asyncio.Event] = []
        self.list_all_calls = 0

    def _check(self, operation: str) -> None:
        if self.fail:
            raise DataAccessException(operation, "connection refused")

    async def list_all(self) -> List[Interaction]:
        self.list_all_calls += 1
        self._check("fetch all interactions")
        data = list(self.interactions)
        if self.gates:
            await self.gates.pop(0).wait()
        return data

    async def list_by_employee(self, employee: str) -> List[Interaction]:
        self._check(f"fetch interactions for employee {employee}")
        return [i for i in self.interactions if i.employee == employee]

    async def list_by_responder(self, employee: str) -> List[Interaction]:
        self._check(f"fetch interactions answered by {employee}")
        return [
            i for i in self.interactions
            if any(r.response_by == employee for r in i.response_times)
        ]

    async def list_by_ticket(self, ticket_id: str) -> List[Interaction]:
        self._check(f"fetch interactions for ticket {ticket_id}")
        return [i for i in self.interactions if i.ticket_id == ticket_id]

    async def add_many(self, interactions: Sequence[Interaction]) -> int:
        self._check("store interactions")
        self.interactions.extend(interactions)
        return len(interactions)


class StaticConfigProvider(IScoringConfigProvider):

    def __init__(self, config: ScoringConfig):
        self.config = config

    def get_config(self) -> ScoringConfig:
        return self.config
