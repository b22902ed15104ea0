"""
Structured logging helpers.

Job payloads carry prompts and whole scripts, so context values are
summarised before they reach a log record.

Dependencies: logging (stdlib)
System role: Safe structured context for log records
"""

import enum
import logging
from datetime import datetime
from typing import Any
from uuid import UUID

# LogRecord attributes a context key must not overwrite
_RESERVED_KEYS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def safe_log_value(value: Any, max_length: int = 200) -> str:
    """
    Convert a context value to a short string for logging.

    Collections are summarised by size rather than dumped, since a job
    payload can hold a full script.

    Args:
        value: Value to convert
        max_length: Length beyond which strings are truncated

    Returns:
        str: Loggable representation
    """
    if value is None:
        return "None"
    if isinstance(value, enum.Enum):
        text = str(value.value)
    elif isinstance(value, (UUID, datetime)):
        text = value.isoformat() if isinstance(value, datetime) else str(value)
    elif isinstance(value, (list, tuple, set)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        try:
            text = str(value)
        except Exception as e:
            return f"<unloggable {type(e).__name__}>"

    if len(text) > max_length:
        return f"{text[:max_length]}... (truncated, {len(text)} total)"
    return text


def _safe_context(context: dict[str, Any]) -> dict[str, str]:
    safe = {}
    for key, value in context.items():
        if key in _RESERVED_KEYS:
            key = f"ctx_{key}"
        safe[key] = safe_log_value(value)
    return safe


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log `message` with every context value passed through safe_log_value."""
    logger.log(level, message, extra=_safe_context(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception with its type, message and context.

    Details carried by a TrailerError are merged into the context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being reported
        **context: Additional key/value context
    """
    details = getattr(exc, "details", None)
    if isinstance(details, dict):
        context = {**details, **context}
    safe = _safe_context(context)
    safe["error_type"] = type(exc).__name__
    safe["error_msg"] = safe_log_value(exc, max_length=500)
    logger.error(message, exc_info=exc, extra=safe)
