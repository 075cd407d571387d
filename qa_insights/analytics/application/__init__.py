"""
Analytics Application Layer
===========================

Contains:
- Services: DashboardService, IngestionService
- Interfaces: IInteractionRepository, IScoringConfigProvider
- DTOs: request/response models
"""

from qa_insights.analytics.application.services import (
    DashboardService,
    DashboardSnapshot,
    IngestionService,
    IInteractionRepository,
    IScoringConfigProvider,
)
from qa_insights.analytics.application.dto import (
    DailyTrendResponse,
    EmployeeStatResponse,
    IngestResponse,
    InsightResponse,
    InteractionIngestRequest,
    InteractionRecord,
    InteractionResponse,
    OverviewResponse,
    RefreshResponse,
    ResponseEventDTO,
    SLAEventResponse,
    SLAReportResponse,
    TeamOverviewResponse,
    TicketDetailResponse,
    TicketSummaryResponse,
    WeeklyBucketResponse,
    WeeksResponse,
)

__all__ = [
    # Services
    "DashboardService",
    "DashboardSnapshot",
    "IngestionService",
    "IInteractionRepository",
    "IScoringConfigProvider",
    # DTOs
    "DailyTrendResponse",
    "EmployeeStatResponse",
    "IngestResponse",
    "InsightResponse",
    "InteractionIngestRequest",
    "InteractionRecord",
    "InteractionResponse",
    "OverviewResponse",
    "RefreshResponse",
    "ResponseEventDTO",
    "SLAEventResponse",
    "SLAReportResponse",
    "TeamOverviewResponse",
    "TicketDetailResponse",
    "TicketSummaryResponse",
    "WeeklyBucketResponse",
    "WeeksResponse",
]
