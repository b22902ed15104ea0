"""API routers."""

from .health import router as health_router
from .jobs import router as jobs_router
from .projects import router as projects_router
from .queue import router as queue_router
from .scripts import router as scripts_router
from .videos import router as videos_router

__all__ = [
    "health_router",
    "jobs_router",
    "projects_router",
    "queue_router",
    "scripts_router",
    "videos_router",
]
