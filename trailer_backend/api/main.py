"""
FastAPI application with assembled routers.

The app factory wires middleware and routers; the lifespan builds the
ServiceContainer (engine, queue, gateways, services and, when enabled,
an in-process worker pool) and disposes it on shutdown.

Dependencies: fastapi, uvicorn, trailer_backend.api.routers, trailer_backend.application
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trailer_backend.application.container import ServiceContainer
from trailer_backend.configs import Settings, get_settings
from trailer_backend.observability import configure_logging
from trailer_backend.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    health_router,
    jobs_router,
    projects_router,
    queue_router,
    scripts_router,
    videos_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Builds and starts the service container unless one was injected,
    in which case its owner manages its lifecycle.
    """
    if getattr(app.state, "container", None) is not None:
        yield
        return

    settings: Settings = app.state.settings
    container = ServiceContainer.build(settings)
    await container.startup(start_workers=settings.queue.enable_workers)
    app.state.container = container
    logger.info("Service container ready")

    yield

    await container.shutdown()
    app.state.container = None
    logger.info("Service container shut down")


def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        settings: Application settings; loaded from the environment when omitted
        container: Prebuilt service container (tests, embedding)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title="Developer Trailer Generation API",
        description="Job queue and orchestration for AI script and video generation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Observability middleware; correlation runs first so request logs carry the id
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(videos_router, prefix="/api/v1")
    app.include_router(scripts_router, prefix="/api/v1")
    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(queue_router, prefix="/api/v1")

    return app


def main() -> None:
    """Run the API with uvicorn."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


if __name__ == "__main__":
    main()
