"""
Shared API Middleware
=====================

Request tracing, timing and logging middleware plus the exception handlers
that turn ApplicationException subclasses into JSON error responses.

Registration order matters: Starlette runs the last-added middleware first,
so CorrelationIDMiddleware must be added after LoggingMiddleware for request
logs to carry the id.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from qa_insights.core import (
    ApplicationException,
    DataAccessException,
    ResourceNotFoundException,
)
from qa_insights.shared.infrastructure.logging import get_context_logger, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
RETRY_AFTER_SECONDS = "30"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "unknown")


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation id, reusing the caller's if sent."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Per-process request counters.

    The running totals live on the middleware instance; each response gets
    its own duration and the request ordinal as headers.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.request_count = 0
        self.total_response_time = 0.0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        self.request_count += 1
        ordinal = self.request_count
        started = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        self.total_response_time += elapsed
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        response.headers["X-Request-Count"] = str(ordinal)
        return response


class LoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_logger = get_context_logger(__name__, getattr(request.state, "correlation_id", None))
        route = {"method": request.method, "path": request.url.path}
        started = time.perf_counter()

        request_logger.info(
            "Request started",
            extra={**route, "client": request.client.host if request.client else None}
        )

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                "Request failed",
                extra={**route, "error": str(e), "response_time_ms": _elapsed_ms(started)}
            )
            raise

        request_logger.info(
            "Request completed",
            extra={**route, "status_code": response.status_code, "response_time_ms": _elapsed_ms(started)}
        )
        return response


# ========== Exception Handlers ==========

def _status_for(exc: ApplicationException) -> int:
    if isinstance(exc, DataAccessException):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, ResourceNotFoundException):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(
    status_code: int,
    body: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def application_exception_handler(
    request: Request, exc: ApplicationException
) -> JSONResponse:
    """
    Map an ApplicationException to its HTTP status.

    DataAccessException becomes 503 with a Retry-After hint; the last good
    snapshot keeps being served by the read endpoints meanwhile.
    """
    correlation_id = _correlation_id(request)
    status_code = _status_for(exc)

    logger.warning(
        "Application exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
            "status_code": status_code
        }
    )

    headers = None
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {"Retry-After": RETRY_AFTER_SECONDS}

    return _error_response(
        status_code,
        {"detail": exc.message, "details": exc.details, "correlation_id": correlation_id},
        headers
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500. The exception text is only echoed in development."""
    correlation_id = _correlation_id(request)

    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    settings = getattr(request.app.state, "settings", None)
    in_development = getattr(settings, "environment", None) == "development"

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "detail": "Internal server error",
            "correlation_id": correlation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "debug_info": str(exc) if in_development else None
        }
    )
