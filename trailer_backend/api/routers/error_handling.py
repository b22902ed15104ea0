"""
Domain error handling for routers.

A decorator that maps the TrailerError hierarchy onto HTTP responses so
route handlers only contain the happy path.

Dependencies: fastapi, trailer_backend.core.exceptions
System role: Exception to HTTP status translation
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from trailer_backend.core.exceptions import (
    PersistenceError,
    ProjectBusyError,
    ProjectNotFoundError,
    SegmentNotFoundError,
    TrailerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_domain_errors(func: F) -> F:
    """
    Translate domain exceptions raised by a route into HTTPExceptions.

    - ValidationError -> 422 with the failing field
    - *NotFoundError -> 404
    - ProjectBusyError -> 409
    - PersistenceError -> 503
    - any other TrailerError -> 500
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except ValidationError as e:
            logger.warning("Rejected generation input", extra={"field": e.field, "error": e.message})
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"message": e.message, "field": e.field, **e.details},
            )

        except (ProjectNotFoundError, SegmentNotFoundError) as e:
            logger.warning("Resource not found", extra={"error": e.message})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

        except ProjectBusyError as e:
            logger.warning("Project busy", extra={"error": e.message})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

        except PersistenceError as e:
            logger.error("Job store unavailable", extra={"error": e.message})
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Job store unavailable, try again later",
            )

        except TrailerError as e:
            logger.exception("Unexpected domain failure", extra={"error": e.message})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=e.message,
            )

    return wrapper  # type: ignore
