"""
QA Insights - Main Application
==============================

Customer-support QA analytics service.

Turns per-interaction QA scores, sentiment labels and response-time logs
into per-employee rollups, weekly reports, SLA breach lists and team
insights, served from an in-memory snapshot that is refreshed on demand
and on a schedule.

Layout:
    analytics/interfaces      HTTP routes
    analytics/application     DashboardService, IngestionService, DTOs
    analytics/domain          aggregation rules (pure functions)
    analytics/infrastructure  SQLAlchemy store, YAML config, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from qa_insights.analytics.application import DashboardService, IngestionService
from qa_insights.analytics.infrastructure import (
    ScoringConfigManager,
    SnapshotScheduler,
    SQLAlchemyInteractionRepository,
)
from qa_insights.analytics.interfaces import analytics_router
from qa_insights.config import Settings, settings
from qa_insights.core import ApplicationException, DataAccessException
from qa_insights.infrastructure.database import close_database, create_tables, init_database
from qa_insights.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from qa_insights.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)

API_DESCRIPTION = """
Aggregates QA scores, sentiment labels and response-time logs into
per-employee and per-week rollups, and flags response-time SLA breaches.

**Overall score** is 0.7 x the core average plus 0.3 x the contextual
average, or the core average alone when no contextual criterion was scored.

- Core criteria: tone & trust, grammar, professionalism, non-technical
  clarity, empathy, responsiveness
- Contextual criteria: client alignment, proactivity, ownership,
  enablement, consistency, risk impact

An employee reply to a client that takes longer than 30 minutes is an SLA
violation.
"""

ENDPOINTS = [
    "POST /analytics/interactions",
    "POST /analytics/refresh",
    "GET /analytics/overview",
    "GET /analytics/employees",
    "GET /analytics/employees/{employee}",
    "GET /analytics/sla",
    "GET /analytics/weeks",
    "GET /analytics/weekly",
    "GET /analytics/tickets",
    "GET /analytics/tickets/{ticket_id}",
]


async def _open_database() -> bool:
    """Connect and create tables. False means the store is unreachable for now."""
    init_database()
    try:
        await create_tables()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Interaction store unreachable, serving in degraded mode", extra={"error": str(e)})
        return False
    return True


async def _start_refresh_job(
    dashboard_service: DashboardService, config: Settings
) -> Optional[SnapshotScheduler]:
    if config.refresh_interval_seconds <= 0:
        logger.info("Scheduled snapshot refresh disabled")
        return None

    async def refresh_snapshot() -> None:
        try:
            await dashboard_service.refresh()
        except DataAccessException as e:
            logger.warning("Scheduled snapshot refresh failed", extra={"error": e.message})

    scheduler = SnapshotScheduler(interval_seconds=config.refresh_interval_seconds)
    await scheduler.start(refresh_snapshot)
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Wire the service on startup and release its resources on shutdown.

    The store being down at startup is tolerated: reads answer 503 until a
    refresh succeeds. A broken scoring config file is not tolerated.
    """
    setup_logging(settings.log_level, settings.environment)
    logger.info(
        "QA Insights starting",
        extra={"version": settings.app_version, "environment": settings.environment}
    )

    database_ready = await _open_database()

    config_manager = ScoringConfigManager()
    config_manager.load(settings.scoring_config_path)
    config_manager.start_watching()

    repository = SQLAlchemyInteractionRepository()
    dashboard_service = DashboardService(repository, config_manager)
    scheduler = await _start_refresh_job(dashboard_service, settings)

    app.state.settings = settings
    app.state.database_ready = database_ready
    app.state.config_manager = config_manager
    app.state.dashboard_service = dashboard_service
    app.state.ingestion_service = IngestionService(repository)
    app.state.scheduler = scheduler
    logger.info("QA Insights ready", extra={"database_ready": database_ready})

    try:
        yield
    finally:
        logger.info("QA Insights stopping")
        if scheduler is not None:
            await scheduler.stop()
        config_manager.stop_watching()
        await close_database()


app = FastAPI(
    title="QA Insights API",
    description=API_DESCRIPTION,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
# Starlette runs the last-added middleware outermost
app.add_middleware(LoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)

app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(analytics_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Liveness plus the state of the store, scoring config, scheduler and snapshot."""
    state = request.app.state
    config_manager = getattr(state, "config_manager", None)
    dashboard_service = getattr(state, "dashboard_service", None)
    scheduler = getattr(state, "scheduler", None)
    snapshot = dashboard_service.snapshot if dashboard_service is not None else None
    database_ready = getattr(state, "database_ready", False)

    if config_manager is None:
        scoring_config = "not_loaded"
    else:
        scoring_config = f"loaded ({len(config_manager.get_config().allowed_employees)} employees)"

    return {
        "status": "healthy" if database_ready else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "database": "connected" if database_ready else "unavailable",
            "scoring_config": scoring_config,
            "scheduler": "running" if scheduler is not None and scheduler.is_running else "stopped",
            "snapshot": "not_computed" if snapshot is None else f"sequence {snapshot.sequence}",
        },
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "QA Insights",
        "version": settings.app_version,
        "docs": app.docs_url,
        "health": "/health",
        "endpoints": ENDPOINTS,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "qa_insights.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )
