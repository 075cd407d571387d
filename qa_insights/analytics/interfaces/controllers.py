"""
Analytics Controllers (API Routes)
==================================

FastAPI routes for the QA analytics dashboard.

Controllers are thin - they delegate to application services.
"""

import time
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from qa_insights.analytics.application import (
    DailyTrendResponse,
    DashboardService,
    EmployeeStatResponse,
    IngestionService,
    IngestResponse,
    InsightResponse,
    InteractionIngestRequest,
    InteractionResponse,
    OverviewResponse,
    RefreshResponse,
    SLAEventResponse,
    SLAReportResponse,
    TeamOverviewResponse,
    TicketDetailResponse,
    TicketSummaryResponse,
    WeeklyBucketResponse,
    WeeksResponse,
)
from qa_insights.analytics.domain import SLAEvaluator
from qa_insights.core import DataAccessException, ResourceNotFoundException
from qa_insights.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/analytics", tags=["QA Analytics"])


# ========== Example payloads for Swagger ==========

INTERACTION_EXAMPLE = {
    "ticket_id": "TCK-1042",
    "employee": "Sajni V",
    "created_date": "2024-01-15T10:00:00Z",
    "subject": "Unable to export monthly report",
    "sentiment": "Positive",
    "sentiment_scores": {"positive": 0.82, "negative": 0.03, "neutral": 0.12, "mixed": 0.03},
    "tone_and_trust": 9,
    "grammar_language": 8.5,
    "professionalism_clarity": 9,
    "non_tech_clarity": 8,
    "empathy": 8,
    "responsiveness": 7.5,
    "client_alignment": 8,
    "proactivity": 0,
    "response_times": [
        {"response_by": "Sajni V", "response_time": "0h 19m", "response_type": "Employee to Client"}
    ]
}

INGEST_RESPONSE_EXAMPLE = {
    "created": 1,
    "failed": 0,
    "errors": []
}


# ========== Dependencies ==========

def get_dashboard_service(request: Request) -> DashboardService:
    """Dashboard service built at startup."""
    service = getattr(request.app.state, "dashboard_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard service not initialized"
        )
    return service


def get_ingestion_service(request: Request) -> IngestionService:
    service = getattr(request.app.state, "ingestion_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ingestion service not initialized"
        )
    return service


def _unavailable(e: DataAccessException) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=e.message,
        headers={"Retry-After": "30"}
    )


def _not_found(e: ResourceNotFoundException) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


# ========== Route Handlers ==========

@router.post(
    "/interactions",
    response_model=IngestResponse,
    summary="Ingest QA-reviewed interactions",
    description="""
    Store a batch of raw interaction records.

    Records are validated individually: a record missing `ticket_id`,
    `employee` or a parseable `created_date` is rejected and reported in
    `errors` while the rest of the batch is stored.

    Criterion values may be numbers or numeric strings; anything else is
    scored as 0 and excluded from averages. Sentiment is case-insensitive.
    Response entries that are not objects, or whose fields are not strings,
    are kept out of SLA evaluation instead of failing the record.
    """,
    responses={
        200: {
            "description": "Batch processed",
            "content": {"application/json": {"example": INGEST_RESPONSE_EXAMPLE}}
        },
        503: {"description": "Interaction store unavailable"}
    },
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"example": {"interactions": [INTERACTION_EXAMPLE]}}}
        }
    }
)
async def ingest_interactions(
    payload: InteractionIngestRequest,
    ingestion_service: IngestionService = Depends(get_ingestion_service),
    dashboard_service: DashboardService = Depends(get_dashboard_service)
):
    start_time = time.perf_counter()

    try:
        result = await ingestion_service.ingest(payload.interactions)
    except DataAccessException as e:
        raise _unavailable(e)

    if result.created:
        dashboard_service.invalidate()

    logger.info(
        "Ingest request handled",
        extra={
            "interactions_created": result.created,
            "interactions_failed": result.failed,
            "processing_time_ms": int((time.perf_counter() - start_time) * 1000)
        }
    )
    return result


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Recompute the dashboard snapshot",
    responses={503: {"description": "Interaction store unavailable; previous snapshot kept"}}
)
async def refresh_snapshot(service: DashboardService = Depends(get_dashboard_service)):
    try:
        snapshot = await service.refresh()
    except DataAccessException as e:
        raise _unavailable(e)

    return RefreshResponse(
        sequence=snapshot.sequence,
        generated_at=snapshot.generated_at,
        interactions=len(snapshot.interactions),
        employees=len(snapshot.employee_stats)
    )


@router.get(
    "/overview",
    response_model=OverviewResponse,
    summary="Team overview and insights",
    description="""
    Team totals, rule-based insights and a trailing seven-day trend of
    interaction counts, SLA compliance and mean QA score.
    """
)
async def get_overview(service: DashboardService = Depends(get_dashboard_service)):
    try:
        snapshot = await service.get_snapshot()
        trend = await service.daily_trend()
    except DataAccessException as e:
        raise _unavailable(e)

    return OverviewResponse(
        generated_at=snapshot.generated_at,
        overview=TeamOverviewResponse.from_domain(snapshot.overview),
        insights=[InsightResponse.from_domain(i) for i in snapshot.insights],
        trend=[DailyTrendResponse.from_domain(t) for t in trend]
    )


@router.get(
    "/employees",
    response_model=List[EmployeeStatResponse],
    summary="Per-employee statistics",
    description="""
    One entry per allowed employee, in order of first appearance.

    `total_tickets` counts interactions, not distinct tickets. Criterion
    averages only include values above zero.
    """
)
async def list_employee_stats(service: DashboardService = Depends(get_dashboard_service)):
    try:
        stats = await service.employee_stats()
    except DataAccessException as e:
        raise _unavailable(e)
    return [EmployeeStatResponse.from_domain(s) for s in stats]


@router.get(
    "/employees/{employee}",
    response_model=EmployeeStatResponse,
    summary="Statistics for one employee",
    responses={404: {"description": "Employee not allowed or without interactions"}}
)
async def get_employee_stat(
    employee: str,
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        stat = await service.employee_detail(employee)
    except ResourceNotFoundException as e:
        raise _not_found(e)
    except DataAccessException as e:
        raise _unavailable(e)
    return EmployeeStatResponse.from_domain(stat)


@router.get(
    "/sla",
    response_model=SLAReportResponse,
    summary="SLA response events",
    description="""
    Employee-to-client response events checked against the 30 minute limit.

    Totals and compliance always cover every event; `violations_only`
    filters the listed events.
    """
)
async def get_sla_report(
    violations_only: bool = Query(False, description="List only violating events"),
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        events = await service.sla_events()
    except DataAccessException as e:
        raise _unavailable(e)

    listed = SLAEvaluator.violations(events) if violations_only else events
    return SLAReportResponse(
        events=[SLAEventResponse.from_domain(e) for e in listed],
        total_events=len(events),
        violations=SLAEvaluator.count_violations(events),
        compliance=SLAEvaluator.compliance_rate(events)
    )


@router.get(
    "/weeks",
    response_model=WeeksResponse,
    summary="Weeks with data"
)
async def list_weeks(service: DashboardService = Depends(get_dashboard_service)):
    try:
        weeks = await service.available_weeks()
    except DataAccessException as e:
        raise _unavailable(e)
    return WeeksResponse(weeks=weeks)


@router.get(
    "/weekly",
    response_model=WeeklyBucketResponse,
    summary="Weekly report",
    description="""
    Aggregates for the Sunday-aligned week containing `week_start`.

    Without `week_start` the most recent week with data is returned, or the
    current week when there is no data.
    """
)
async def get_weekly_report(
    week_start: Optional[date] = Query(None, description="Any date within the wanted week"),
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        bucket = await service.weekly_report(week_start)
    except DataAccessException as e:
        raise _unavailable(e)
    return WeeklyBucketResponse.from_domain(bucket)


@router.get(
    "/tickets",
    response_model=List[TicketSummaryResponse],
    summary="Ticket summaries",
    description="Tickets matching `query` on ticket id or employee name, most recently opened first."
)
async def list_tickets(
    query: str = Query("", description="Case-insensitive substring of ticket id or employee"),
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        summaries = await service.ticket_summaries(query)
    except DataAccessException as e:
        raise _unavailable(e)
    return [TicketSummaryResponse.from_domain(s) for s in summaries]


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketDetailResponse,
    summary="Ticket detail",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: str,
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        summary, interactions = await service.ticket_detail(ticket_id)
    except ResourceNotFoundException as e:
        raise _not_found(e)
    except DataAccessException as e:
        raise _unavailable(e)

    return TicketDetailResponse(
        summary=TicketSummaryResponse.from_domain(summary),
        interactions=[InteractionResponse.from_domain(i) for i in interactions]
    )


# Export router
analytics_router = router
