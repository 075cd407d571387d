"""
Analytics Infrastructure Layer
==============================

Contains:
- Models: SQLAlchemy ORM mapping for interactions
- Repositories: SQLAlchemyInteractionRepository
- External: ScoringConfigManager (YAML + watchdog), SnapshotScheduler (APScheduler)
"""

from qa_insights.analytics.infrastructure.models import InteractionModel
from qa_insights.analytics.infrastructure.repositories import SQLAlchemyInteractionRepository
from qa_insights.analytics.infrastructure.external import (
    ScoringFileEventHandler,
    read_scoring_file,
    ScoringConfigManager,
    SnapshotScheduler,
)

__all__ = [
    "InteractionModel",
    "SQLAlchemyInteractionRepository",
    "ScoringFileEventHandler",
    "read_scoring_file",
    "ScoringConfigManager",
    "SnapshotScheduler",
]
