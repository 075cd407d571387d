"""
Analytics Infrastructure Models
===============================

SQLAlchemy ORM models for the analytics module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from qa_insights.infrastructure.database import Base


class InteractionModel(Base):
    """
    Database model for the Interaction entity.

    Maps to the 'interactions' table. The autoincrement id preserves arrival
    order, which fixes the order employees first appear in aggregates.
    """
    __tablename__ = "interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    ticket_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    employee: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Sentiment
    sentiment: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sentiment_scores: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Core criteria
    tone_and_trust: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    grammar_language: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    professionalism_clarity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    non_tech_clarity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    empathy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    responsiveness: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Contextual criteria
    client_alignment: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    proactivity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ownership_accountability: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    enablement: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    consistency: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_impact: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # List of {response_by, response_time, response_type}
    response_times: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
