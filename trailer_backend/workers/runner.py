"""
Worker process runner.

Builds its own service container, starts the worker pool and keeps it
running until SIGINT/SIGTERM, logging queue stats periodically.

Dependencies: asyncio, signal, trailer_backend.application.container
System role: Background worker process lifecycle
"""

import asyncio
import logging
import signal

from trailer_backend.application.container import ServiceContainer
from trailer_backend.configs import Settings
from trailer_backend.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

STATS_INTERVAL_SECONDS = 30.0


async def _log_stats(container: ServiceContainer, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=STATS_INTERVAL_SECONDS)
        except asyncio.TimeoutError:
            try:
                stats = await container.queue.stats()
            except PersistenceError as e:
                logger.error(f"{__name__}:_log_stats - Could not read queue stats: {e.message}")
            else:
                logger.info(f"{__name__}:_log_stats - Queue status: {stats.to_dict()}")


async def run_worker(settings: Settings, stop: asyncio.Event | None = None) -> None:
    """
    Run a worker pool until stopped.

    Args:
        settings: Application settings
        stop: Event that ends the run; SIGINT/SIGTERM set it when omitted
    """
    if stop is None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

    container = ServiceContainer.build(settings)
    await container.startup(start_workers=True)
    logger.info(
        f"{__name__}:run_worker - Worker pool running with concurrency "
        f"{settings.queue.concurrency}. Press Ctrl+C to stop."
    )

    stats_task = asyncio.create_task(_log_stats(container, stop))
    try:
        await stop.wait()
        logger.info(f"{__name__}:run_worker - Shutting down worker pool")
    finally:
        stop.set()
        await stats_task
        await container.shutdown()
