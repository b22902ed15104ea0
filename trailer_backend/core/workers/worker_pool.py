"""
Worker pool.

A fixed number of worker loops pull jobs from the queue, run the
handler for the job type, and record the outcome. The queue's atomic
claim guarantees no two workers ever process the same job; within one
job the work is a sequential async chain. Segment and project state is
recomputed after every change a worker makes.

Persistence writes are retried with tenacity and logged loudly when
they still fail, since a lost write leaves job state stale.

Dependencies: asyncio, tenacity, trailer_backend.core.job_queue, trailer_backend.core.aggregator
System role: Job execution runtime with explicit start/stop lifecycle
"""

import asyncio
import functools
import logging
import time
from typing import Any, Awaitable, Callable, Iterable
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from trailer_backend.boundary.db.models.job_model import JobType
from trailer_backend.configs.queue import QueueSettings
from trailer_backend.core.aggregator import ProgressAggregator
from trailer_backend.core.exceptions import (
    JobCancelledError,
    PersistenceError,
    ProjectNotFoundError,
    SegmentNotFoundError,
    ValidationError,
)
from trailer_backend.core.job_queue import FailOutcome, JobQueue, QueuedJob
from trailer_backend.core.workers.handlers import JobHandler
from trailer_backend.observability.correlation import clear_correlation_id, set_correlation_id
from trailer_backend.observability.log_context import log_exception_with_context

logger = logging.getLogger(__name__)


def default_persistence_retrying() -> AsyncRetrying:
    """Retry policy for worker-side persistence writes."""
    return AsyncRetrying(
        retry=retry_if_exception_type(PersistenceError),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=0.5, max=5, jitter=0.5),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def _error_message(error: BaseException) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


class _QueueReporter:
    """JobReporter bound to one claimed job."""

    def __init__(self, pool: "WorkerPool", job: QueuedJob) -> None:
        self._pool = pool
        self._job = job

    async def progress(self, percent: int | float) -> None:
        raised = await self._pool._persist(
            "update_progress",
            self._pool.queue.update_progress,
            self._job.id,
            percent,
            self._job.worker_id,
            default=False,
        )
        if raised:
            await self._pool._sync(self._job)

    async def record_handle(self, handle: str) -> None:
        await self._pool._persist(
            "record_external_handle",
            self._pool.queue.record_external_handle,
            self._job.id,
            handle,
            self._job.worker_id,
        )

    async def is_cancelled(self) -> bool:
        return await self._pool._persist(
            "is_cancel_requested", self._pool.queue.is_cancel_requested, self._job.id, default=False
        )


class WorkerPool:
    """
    Bounded pool of queue workers.

    Usage:
        pool = WorkerPool(queue, [video_handler, script_handler], aggregator, settings.queue)
        await pool.start()
        ...
        await pool.stop()
    """

    def __init__(
        self,
        queue: JobQueue,
        handlers: Iterable[JobHandler],
        aggregator: ProgressAggregator,
        settings: QueueSettings,
        name: str = "worker",
        retrying: AsyncRetrying | None = None,
    ) -> None:
        """
        Initialize the worker pool.

        Args:
            queue: Job queue to pull from
            handlers: One handler per job type
            aggregator: Segment/project state aggregator
            settings: Concurrency and idle settings
            name: Prefix of worker ids
            retrying: Retry policy for persistence writes
        """
        self.queue = queue
        self._handlers: dict[JobType, JobHandler] = {handler.job_type: handler for handler in handlers}
        self._aggregator = aggregator
        self._settings = settings
        self._name = name
        self._retrying = retrying or default_persistence_retrying()
        self._tasks: list[asyncio.Task] = []
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start `concurrency` worker loops; a second call is a no-op."""
        if self._tasks:
            return
        self._stop_event = asyncio.Event()
        concurrency = max(1, self._settings.concurrency)
        self._tasks = [
            asyncio.create_task(self._worker_loop(f"{self._name}-{index}"), name=f"{self._name}-{index}")
            for index in range(1, concurrency + 1)
        ]
        logger.info(f"{__name__}:start - Started {concurrency} workers")

    async def stop(self, grace_seconds: float = 10.0) -> None:
        """
        Stop all worker loops.

        Workers finish their current job if it ends within `grace_seconds`;
        jobs still running after that are interrupted and handed back to
        the queue through the retry policy.

        Args:
            grace_seconds: Time allowed for in-flight jobs to finish
        """
        if not self._tasks:
            return
        self._stop_event.set()
        _, pending = await asyncio.wait(self._tasks, timeout=grace_seconds)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []
        logger.info(f"{__name__}:stop - Workers stopped")

    async def run_once(self, worker_id: str) -> bool:
        """
        Claim and process at most one job.

        Jobs whose worker lease expired are reclaimed first, so a crashed
        worker never leaves a job ACTIVE for good.

        Args:
            worker_id: Identifier recorded on the claimed job

        Returns:
            True if a job was processed, False if none was eligible
        """
        await self._reclaim_expired()
        job = await self.queue.dequeue_next(worker_id)
        if job is None:
            return False
        await self._process(job, worker_id)
        return True

    async def run_until_idle(self, worker_id: str = "worker-inline", max_jobs: int = 1000) -> int:
        """Process jobs inline until none is eligible; returns the count processed."""
        processed = 0
        while processed < max_jobs and await self.run_once(worker_id):
            processed += 1
        return processed

    async def cancel_project(self, project_id: UUID, reason: str = "Cancelled by user") -> list[UUID]:
        """
        Cancel all in-flight jobs of a project.

        Workers polling a cancelled job stop at their next poll; a
        completion arriving afterwards is ignored by the queue.

        Args:
            project_id: Project UUID
            reason: Error recorded on each cancelled job

        Returns:
            Ids of the cancelled jobs
        """
        cancelled = await self.queue.cancel_project_jobs(project_id, reason)
        await self._aggregator.recompute_project_segments(project_id)
        return cancelled

    async def _worker_loop(self, worker_id: str) -> None:
        logger.info(f"{__name__}:_worker_loop - {worker_id} started")
        while not self._stop_event.is_set():
            try:
                processed = await self.run_once(worker_id)
            except PersistenceError as e:
                log_exception_with_context(
                    logger, f"{__name__}:_worker_loop - {worker_id} lost a job store write", e, worker_id=worker_id
                )
                processed = False
            except Exception as e:
                log_exception_with_context(
                    logger, f"{__name__}:_worker_loop - {worker_id} hit an unexpected error", e, worker_id=worker_id
                )
                processed = False

            if not processed:
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self._settings.idle_sleep_seconds,
                    )
                except asyncio.TimeoutError:
                    pass
        logger.info(f"{__name__}:_worker_loop - {worker_id} exiting")

    async def _process(self, job: QueuedJob, worker_id: str) -> None:
        set_correlation_id(str(job.id))
        started = time.perf_counter()
        logger.info(
            f"{__name__}:_process - {worker_id} processing {job.type.value} job {job.id} "
            f"(attempt {job.retry_count + 1}/{job.max_retries + 1})"
        )
        handler = self._handlers.get(job.type)
        try:
            await self._sync(job)
            if handler is None:
                raise ValidationError(f"No handler registered for {job.type.value}", field="type")
            output = await handler.handle(job, _QueueReporter(self, job))
        except JobCancelledError:
            logger.info(f"{__name__}:_process - Job {job.id} stopped after cancellation")
        except asyncio.CancelledError:
            await self._record_failure(job, handler, "Worker stopped before the job finished", retryable=True)
            raise
        except ValidationError as e:
            await self._record_failure(job, handler, _error_message(e), retryable=False)
        except Exception as e:
            logger.warning(f"{__name__}:_process - Job {job.id} attempt failed: {type(e).__name__}: {e}")
            await self._record_failure(job, handler, _error_message(e), retryable=True)
        else:
            applied = await self._persist(
                "complete",
                self.queue.complete,
                job.id,
                output,
                job.worker_id,
                functools.partial(handler.on_completed, job, output),
                critical=True,
            )
            if not applied:
                logger.info(f"{__name__}:_process - Completion of job {job.id} ignored, no longer held")
        finally:
            await self._sync(job)
            elapsed = time.perf_counter() - started
            logger.info(f"{__name__}:_process - {worker_id} finished job {job.id} in {elapsed:.2f}s")
            clear_correlation_id()

    async def _record_failure(
        self,
        job: QueuedJob,
        handler: JobHandler | None,
        error: str,
        retryable: bool,
    ) -> None:
        outcome = await self._persist(
            "fail", self.queue.fail, job.id, error, retryable, job.worker_id, critical=True
        )
        if outcome is FailOutcome.FAILED:
            await self._run_failure_hook(job, handler, error)

    async def _run_failure_hook(self, job: QueuedJob, handler: JobHandler | None, error: str) -> None:
        if handler is None:
            return
        try:
            await handler.on_permanent_failure(job, error)
        except PersistenceError as e:
            log_exception_with_context(
                logger, f"{__name__}:_record_failure - Failure hook for job {job.id} lost its write", e, job_id=job.id
            )

    async def _reclaim_expired(self) -> None:
        """Send jobs of workers that stopped reporting back through the retry policy."""
        reclaimed = await self._persist("reclaim_expired", self.queue.reclaim_expired, default=[])
        for job, outcome in reclaimed:
            logger.warning(
                f"{__name__}:_reclaim_expired - Reclaimed job {job.id} from {job.worker_id}: {outcome.value}"
            )
            if outcome is FailOutcome.FAILED:
                await self._run_failure_hook(job, self._handlers.get(job.type), "Worker lease expired")
            await self._sync(job)

    async def _sync(self, job: QueuedJob) -> None:
        """Recompute the segment/project state a job feeds."""
        if job.project_id is None:
            return
        try:
            if job.segment_id is not None:
                await self._persist("recompute_segment", self._aggregator.recompute_segment, job.segment_id)
                await self._persist("recompute_project", self._aggregator.recompute_project, job.project_id)
            elif job.type == JobType.VIDEO_GENERATE:
                latest = await self._persist("get", self.queue.get, job.id)
                if latest is not None:
                    await self._persist(
                        "apply_project_job",
                        self._aggregator.apply_project_job,
                        job.project_id,
                        latest.status,
                        latest.progress,
                        (latest.output or {}).get("video_url"),
                    )
        except (SegmentNotFoundError, ProjectNotFoundError) as e:
            logger.warning(f"{__name__}:_sync - Skipping state update for job {job.id}: {e.message}")

    async def _persist(
        self,
        operation: str,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        default: Any = None,
        critical: bool = False,
    ) -> Any:
        try:
            return await self._retrying.copy()(fn, *args)
        except PersistenceError as e:
            log_exception_with_context(
                logger, f"{__name__}:_persist - {operation} failed after retries", e, operation=operation
            )
            if critical:
                raise
            return default
