"""
Bounded provider poll loop.

Sequentially polls an external generation until it reaches a terminal
state, suspending for a fixed interval between polls. The loop is the
only place a job waits, so it is also where cooperative cancellation
is observed.

Dependencies: asyncio, trailer_backend.models.video, trailer_backend.core.exceptions
System role: Poll-until-terminal driver for video jobs
"""

import asyncio
import logging
from typing import Awaitable, Callable

from trailer_backend.core.exceptions import (
    GenerationTimeoutError,
    JobCancelledError,
    ProviderJobFailedError,
)
from trailer_backend.models.video import VideoJobStatus, VideoStatusUpdate

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PollLoop:
    """
    Poll a provider handle with a fixed interval and a hard attempt cap.

    Usage:
        loop = PollLoop(interval_seconds=5, max_attempts=60)
        final = await loop.run(lambda: gateway.poll_status(handle), on_update=report)
    """

    def __init__(
        self,
        interval_seconds: float = 5.0,
        max_attempts: int = 60,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the poll loop.

        Args:
            interval_seconds: Wait between two polls
            max_attempts: Polls before giving up
            sleep: Async sleep; injectable for tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def run(
        self,
        poll: Callable[[], Awaitable[VideoStatusUpdate]],
        on_update: Callable[[VideoStatusUpdate], Awaitable[None]] | None = None,
        is_cancelled: Callable[[], Awaitable[bool]] | None = None,
        job_id: object = None,
        handle: str | None = None,
    ) -> VideoStatusUpdate:
        """
        Poll until completed, failed, cancelled or out of attempts.

        Args:
            poll: Reads the current provider status
            on_update: Called with every non-terminal update
            is_cancelled: Checked before each poll
            job_id: Job being driven, for errors and logs
            handle: Provider handle, for errors and logs

        Returns:
            VideoStatusUpdate: The completed update

        Raises:
            JobCancelledError: If cancellation was requested
            ProviderJobFailedError: If the provider reported failure
            GenerationTimeoutError: If max_attempts polls did not finish
        """
        for attempt in range(1, self.max_attempts + 1):
            if is_cancelled is not None and await is_cancelled():
                logger.info(f"{__name__}:run - Cancellation observed for job {job_id}")
                raise JobCancelledError(job_id)

            update = await poll()
            logger.debug(
                f"{__name__}:run - Poll {attempt}/{self.max_attempts} for {handle}: "
                f"{update.status.value} {update.progress}%"
            )

            if update.status == VideoJobStatus.COMPLETED:
                return update
            if update.status == VideoJobStatus.FAILED:
                raise ProviderJobFailedError(
                    update.message or "Video generation failed",
                    details={"external_handle": handle} if handle else None,
                )

            if on_update is not None:
                await on_update(update)
            if attempt < self.max_attempts:
                await self._sleep(self.interval_seconds)

        raise GenerationTimeoutError(self.max_attempts, handle)
