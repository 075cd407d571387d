"""
Analytics Domain Layer
======================

Contains:
- Entities: Interaction and the derived aggregates (EmployeeStat, SLAInteraction,
  WeeklyBucket, TicketSummary, TeamOverview, Insight)
- Value Objects: criteria table, QualityScores, DurationParser,
  OverallScoreCalculator, ScoringConfig
- Domain Services: SLAEvaluator, ScoreAggregator, WeeklyRollup, TrendCalculator
  and friends

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from qa_insights.analytics.domain.entities import (
    DailyTrend,
    EmployeeStat,
    EmployeeWeekDetail,
    Insight,
    InsightKind,
    Interaction,
    SLAInteraction,
    TeamOverview,
    TicketSummary,
    TopPerformer,
    WeeklyBucket,
    ensure_utc,
)
from qa_insights.analytics.domain.value_objects import (
    CONTEXTUAL_CRITERIA,
    CORE_CRITERIA,
    CRITERIA,
    EMPLOYEE_TO_CLIENT,
    SLA_LIMIT_MINUTES,
    Criterion,
    CriterionTier,
    DurationParser,
    InsightThresholds,
    OverallScoreCalculator,
    QualityScores,
    ResponseEvent,
    ScoringConfig,
    Sentiment,
    SentimentDistribution,
    SentimentScores,
)
from qa_insights.analytics.domain.services import (
    CriterionAccumulator,
    EmployeeFilter,
    InsightGenerator,
    InteractionSearch,
    ScoreAggregator,
    SLAEvaluator,
    TeamOverviewCalculator,
    TicketSummarizer,
    TrendCalculator,
    WeeklyRollup,
)

__all__ = [
    # Entities
    "DailyTrend",
    "EmployeeStat",
    "EmployeeWeekDetail",
    "Insight",
    "InsightKind",
    "Interaction",
    "SLAInteraction",
    "TeamOverview",
    "TicketSummary",
    "TopPerformer",
    "WeeklyBucket",
    "ensure_utc",
    # Value Objects
    "CONTEXTUAL_CRITERIA",
    "CORE_CRITERIA",
    "CRITERIA",
    "EMPLOYEE_TO_CLIENT",
    "SLA_LIMIT_MINUTES",
    "Criterion",
    "CriterionTier",
    "DurationParser",
    "InsightThresholds",
    "OverallScoreCalculator",
    "QualityScores",
    "ResponseEvent",
    "ScoringConfig",
    "Sentiment",
    "SentimentDistribution",
    "SentimentScores",
    # Services
    "CriterionAccumulator",
    "EmployeeFilter",
    "InsightGenerator",
    "InteractionSearch",
    "ScoreAggregator",
    "SLAEvaluator",
    "TeamOverviewCalculator",
    "TicketSummarizer",
    "TrendCalculator",
    "WeeklyRollup",
]
