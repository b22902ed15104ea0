"""
Observability module.

Provides logging configuration, correlation ID tracking and
request logging middleware.
"""

from trailer_backend.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from trailer_backend.observability.log_context import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from trailer_backend.observability.logger import configure_logging

__all__ = [
    "configure_logging",
    "log_with_context",
    "log_exception_with_context",
    "safe_log_value",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
]
