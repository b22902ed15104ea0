"""
Service container.

Explicitly constructs the engine, queue, aggregator, gateways, services
and worker pool from settings and owns their lifecycle. The API keeps
one container on app.state; the standalone worker process builds its
own. Nothing here is a module-level singleton.

Dependencies: trailer_backend.configs, trailer_backend.boundary, trailer_backend.core
System role: Composition root
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from tenacity import AsyncRetrying

from trailer_backend.application.services.generation_service import GenerationService
from trailer_backend.application.services.status_service import StatusService
from trailer_backend.boundary.db.base import utcnow
from trailer_backend.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    init_models,
)
from trailer_backend.boundary.gateway.base import VideoGatewayClient
from trailer_backend.boundary.gateway.factory import build_script_gateway, build_video_gateway
from trailer_backend.boundary.gateway.script_client import ScriptGatewayClient
from trailer_backend.configs.settings import Settings
from trailer_backend.core.aggregator import FailurePolicy, ProgressAggregator
from trailer_backend.core.job_queue import Clock, JobQueue
from trailer_backend.core.poll_loop import PollLoop
from trailer_backend.core.workers.handlers import (
    ScriptGenerationHandler,
    ScriptRefinementHandler,
    VideoGenerationHandler,
)
from trailer_backend.core.workers.worker_pool import WorkerPool

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Holds every constructed service of one process.

    Usage:
        container = ServiceContainer.build(get_settings())
        await container.startup(start_workers=True)
        ...
        await container.shutdown()
    """

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine,
        session_factory: async_sessionmaker,
        queue: JobQueue,
        aggregator: ProgressAggregator,
        video_gateway: VideoGatewayClient,
        script_gateway: ScriptGatewayClient,
        poll_loop: PollLoop,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.session_factory = session_factory
        self.queue = queue
        self.aggregator = aggregator
        self.video_gateway = video_gateway
        self.script_gateway = script_gateway
        self.poll_loop = poll_loop
        self.generation_service = GenerationService(
            queue,
            aggregator,
            session_factory,
            video_gateway.capabilities,
            settings.queue,
        )
        self.status_service = StatusService(queue, aggregator, clock=queue.now)
        self.worker_pool: WorkerPool | None = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        engine: AsyncEngine | None = None,
        clock: Clock = utcnow,
        wall_clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        video_gateway: VideoGatewayClient | None = None,
        script_gateway: ScriptGatewayClient | None = None,
    ) -> "ServiceContainer":
        """
        Construct all services from settings.

        Args:
            settings: Application settings
            engine: Existing engine; created from settings when omitted
            clock: UTC clock for the queue
            wall_clock: Epoch clock for the mock video provider
            sleep: Async sleep for the poll loop
            video_gateway: Override of the configured video provider
            script_gateway: Override of the configured script provider

        Returns:
            ServiceContainer
        """
        engine = engine or create_engine_from_settings(settings.database)
        session_factory = create_session_factory(engine)
        queue = JobQueue(session_factory, settings.queue, clock=clock)
        aggregator = ProgressAggregator(
            session_factory,
            FailurePolicy.from_settings(settings.aggregation),
        )
        poll_loop = PollLoop(
            interval_seconds=settings.gateway.poll_interval_seconds,
            max_attempts=settings.gateway.poll_max_attempts,
            sleep=sleep,
        )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            queue=queue,
            aggregator=aggregator,
            video_gateway=video_gateway or build_video_gateway(settings.gateway, clock=wall_clock),
            script_gateway=script_gateway or build_script_gateway(settings.gateway),
            poll_loop=poll_loop,
        )

    def build_worker_pool(self, name: str = "worker", retrying: AsyncRetrying | None = None) -> WorkerPool:
        """Create (once) the worker pool with a handler for every job type."""
        if self.worker_pool is None:
            self.worker_pool = WorkerPool(
                self.queue,
                [
                    VideoGenerationHandler(self.video_gateway, self.poll_loop),
                    ScriptGenerationHandler(self.script_gateway, self.session_factory),
                    ScriptRefinementHandler(self.script_gateway, self.session_factory),
                ],
                self.aggregator,
                self.settings.queue,
                name=name,
                retrying=retrying,
            )
        return self.worker_pool

    async def startup(self, start_workers: bool = False) -> None:
        """
        Prepare the database and optionally start workers.

        Args:
            start_workers: Start the in-process worker pool
        """
        if self.settings.database.create_tables:
            await init_models(self.engine)
            logger.info(f"{__name__}:startup - Database tables ensured")
        if start_workers:
            await self.build_worker_pool().start()

    async def shutdown(self) -> None:
        """Stop workers and dispose the engine."""
        if self.worker_pool is not None:
            await self.worker_pool.stop()
        await self.engine.dispose()
        logger.info(f"{__name__}:shutdown - Services shut down")
