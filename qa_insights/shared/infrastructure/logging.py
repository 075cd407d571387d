"""
Structured Logging
==================

One JSON object per log line, shared by every layer of the service.

Each line carries the UTC timestamp, the deployment environment and, inside
a request, the correlation id set by CorrelationIDMiddleware. Anything passed
through ``extra=`` becomes a top-level key.

Usage:
    from qa_insights.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Snapshot refresh complete", extra={"sequence": 3, "employees": 12})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
REDACTED = "***REDACTED***"
SENSITIVE_KEYS = ("password", "secret", "api_key", "database_url")

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "watchdog", "aiosqlite")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with service context.

    Adds ``timestamp`` (UTC, ISO 8601), ``environment`` and, when present,
    ``correlation_id``. String values under credential-like keys are masked.
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        self.environment = environment
        super().__init__(*args, **kwargs)

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        log_record["environment"] = getattr(record, "environment", self.environment)

        correlation_id = getattr(record, "correlation_id", None) or message_dict.get("correlation_id")
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        for key, value in list(log_record.items()):
            if isinstance(value, str) and any(s in key.lower() for s in SENSITIVE_KEYS):
                log_record[key] = REDACTED


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Route the root logger to stdout as JSON.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        CustomJsonFormatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S", environment=environment)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_context_logger(
    name: str, correlation_id: Optional[str] = None
) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Logger bound to a request's correlation id; the plain logger when there is none."""
    logger = get_logger(name)
    if not correlation_id:
        return logger
    return logging.LoggerAdapter(logger, {"correlation_id": correlation_id})


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **context: Any) -> Iterator[None]:
    """
    Log how long the wrapped block took, whether or not it raised.

    Usage:
        with log_latency(logger, "fetch_interactions", sequence=4):
            interactions = await repository.list_all()
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                **context,
            },
        )
