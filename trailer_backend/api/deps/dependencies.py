"""
Dependency providers.

Resolve services from the ServiceContainer stored on app.state by the
application lifespan.

Dependencies: fastapi, trailer_backend.application
System role: DI for route handlers
"""

from fastapi import Depends, Header, Request

from trailer_backend.application.container import ServiceContainer
from trailer_backend.application.services import GenerationService, StatusService


def get_container(request: Request) -> ServiceContainer:
    """
    Get the service container of the running app.

    Args:
        request: Incoming request

    Returns:
        ServiceContainer: Container created in the lifespan
    """
    return request.app.state.container


def get_generation_service(
    container: ServiceContainer = Depends(get_container),
) -> GenerationService:
    """Get the generation submission service."""
    return container.generation_service


def get_status_service(container: ServiceContainer = Depends(get_container)) -> StatusService:
    """Get the status query service."""
    return container.status_service


def get_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """
    Opaque user identifier supplied by the auth layer in front of the API.

    Args:
        x_user_id: Value of the X-User-ID header

    Returns:
        str | None: User id, never validated here
    """
    return x_user_id
