"""
FastAPI middleware for observability.

Correlation ID and request logging middleware. Status endpoints are
polled every few seconds by clients, so successful GETs on them are
logged at DEBUG to keep the request log readable.

Dependencies: fastapi, starlette, trailer_backend.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from trailer_backend.observability.correlation import (
    clear_correlation_id,
    set_correlation_id,
)
from trailer_backend.observability.log_context import (
    log_exception_with_context,
    log_with_context,
)

logger = logging.getLogger(__name__)

POLLING_PATH_MARKERS = ("/jobs/", "/progress", "/health", "/queue/stats")


def _is_polling_request(method: str, path: str) -> bool:
    return method == "GET" and any(marker in path for marker in POLLING_PATH_MARKERS)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with status code, timing and the calling user."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        path = request.url.path
        context = {
            "method": method,
            "path": path,
            "user_id": request.headers.get("X-User-ID"),
        }

        try:
            response: Response = await call_next(request)
        except Exception as e:
            context["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            log_exception_with_context(logger, f"{method} {path} - Unhandled {type(e).__name__}", e, **context)
            raise

        context["status_code"] = response.status_code
        context["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code < 400 and _is_polling_request(method, path):
            level = logging.DEBUG
        else:
            level = logging.INFO
        log_with_context(logger, level, f"{method} {path} - {response.status_code}", **context)
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind an X-Correlation-ID to the request context and echo it back."""

    async def dispatch(self, request: Request, call_next):
        """
        Inject correlation ID into request context.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response with correlation ID header
        """
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response
