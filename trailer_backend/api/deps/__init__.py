"""FastAPI dependencies."""

from trailer_backend.api.deps.dependencies import (
    get_container,
    get_generation_service,
    get_status_service,
    get_user_id,
)

__all__ = [
    "get_container",
    "get_generation_service",
    "get_status_service",
    "get_user_id",
]
