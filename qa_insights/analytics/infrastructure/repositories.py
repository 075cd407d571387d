"""
Analytics Infrastructure Repositories
=====================================

Concrete implementation of the interaction repository using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
interactions from the database.
"""

import json
from typing import AsyncContextManager, Callable, List, Sequence

from sqlalchemy import Select, String, cast, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qa_insights.analytics.application import IInteractionRepository
from qa_insights.analytics.domain import (
    Criterion,
    Interaction,
    QualityScores,
    ResponseEvent,
    Sentiment,
    SentimentScores,
)
from qa_insights.analytics.infrastructure.models import InteractionModel
from qa_insights.core import DataAccessException
from qa_insights.infrastructure.database import get_session_context
from qa_insights.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SQLAlchemyInteractionRepository(IInteractionRepository):
    """
    SQLAlchemy implementation of the interaction repository.

    Opens a short-lived session per call. Any database or connection error
    is surfaced as DataAccessException.
    """

    def __init__(self, session_factory: SessionFactory = get_session_context):
        self._session_factory = session_factory

    async def list_all(self) -> List[Interaction]:
        stmt = select(InteractionModel).order_by(InteractionModel.id)
        return await self._fetch(stmt, "fetch all interactions")

    async def list_by_employee(self, employee: str) -> List[Interaction]:
        stmt = (
            select(InteractionModel)
            .where(InteractionModel.employee == employee)
            .order_by(InteractionModel.id)
        )
        return await self._fetch(stmt, f"fetch interactions for employee {employee}")

    async def list_by_responder(self, employee: str) -> List[Interaction]:
        # JSON text narrows the rows; the exact match runs on decoded entries
        needle = json.dumps(employee)
        stmt = (
            select(InteractionModel)
            .where(cast(InteractionModel.response_times, String).contains(needle, autoescape=True))
            .order_by(InteractionModel.id)
        )
        candidates = await self._fetch(stmt, f"fetch interactions answered by {employee}")
        return [
            i for i in candidates
            if any(r.response_by == employee for r in i.response_times)
        ]

    async def list_by_ticket(self, ticket_id: str) -> List[Interaction]:
        stmt = (
            select(InteractionModel)
            .where(InteractionModel.ticket_id == ticket_id)
            .order_by(InteractionModel.id)
        )
        return await self._fetch(stmt, f"fetch interactions for ticket {ticket_id}")

    async def add_many(self, interactions: Sequence[Interaction]) -> int:
        models = [self._to_model(i) for i in interactions]
        try:
            async with self._session_factory() as session:
                session.add_all(models)
                await session.flush()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to store interactions", extra={"count": len(models), "error": str(e)})
            raise DataAccessException("store interactions", str(e)) from e
        return len(models)

    async def _fetch(self, stmt: Select, operation: str) -> List[Interaction]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                models = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Interaction fetch failed", extra={"operation": operation, "error": str(e)})
            raise DataAccessException(operation, str(e)) from e
        return [self._to_domain(m) for m in models]

    @staticmethod
    def _to_model(interaction: Interaction) -> InteractionModel:
        return InteractionModel(
            ticket_id=interaction.ticket_id,
            employee=interaction.employee,
            created_date=interaction.created_date,
            subject=interaction.subject,
            sentiment=interaction.sentiment.value if interaction.sentiment else None,
            sentiment_scores=interaction.sentiment_scores.to_dict(),
            response_times=[r.to_dict() for r in interaction.response_times],
            **interaction.scores.to_dict(),
        )

    @staticmethod
    def _to_domain(model: InteractionModel) -> Interaction:
        scores = {c.value: getattr(model, c.value) for c in Criterion}
        return Interaction(
            ticket_id=model.ticket_id,
            employee=model.employee,
            created_date=model.created_date,
            scores=QualityScores.from_mapping(scores),
            sentiment=Sentiment.parse(model.sentiment),
            sentiment_scores=SentimentScores.from_mapping(model.sentiment_scores),
            response_times=[ResponseEvent.from_mapping(r) for r in (model.response_times or [])],
            subject=model.subject,
        )
