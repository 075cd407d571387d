"""
Shared Infrastructure
=====================

Cross-cutting infrastructure used by every bounded context.
"""

from qa_insights.shared.infrastructure.logging import (
    setup_logging,
    get_logger,
    get_context_logger,
    log_latency,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "log_latency",
]
