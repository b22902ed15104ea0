"""
Durable prioritized job queue.

Backed by the generation_jobs table. Each operation runs in its own short
transaction obtained from the injected session factory. Claims are
compare-and-set updates guarded on status, so no two workers can ever be
handed the same job, and terminal transitions are idempotent.

A claim is a lease of visibility_timeout_seconds that every progress
report renews. Jobs whose lease lapsed are reclaimed through the retry
policy, and writes from the worker that lost the lease are ignored.

Dependencies: sqlalchemy, trailer_backend.boundary.db, trailer_backend.core.job_state
System role: Job submission, claim, progress and outcome recording
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trailer_backend.boundary.db.base import utcnow
from trailer_backend.boundary.db.connection import transaction
from trailer_backend.boundary.db.CRUD.job_crud import job_crud
from trailer_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from trailer_backend.configs.queue import QueueSettings
from trailer_backend.core import job_state

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Claim attempts per dequeue when every candidate is taken by a competing worker
_MAX_CLAIM_ROUNDS = 3

_LEASE_EXPIRED_ERROR = "Worker lease expired"


class FailOutcome(str, enum.Enum):
    """Result of recording a job failure."""

    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class QueuedJob:
    """Detached snapshot of a job row; workers hold this as their lease."""

    id: UUID
    type: JobType
    status: JobStatus
    priority: int
    payload: dict
    output: dict | None
    error: str | None
    progress: int
    retry_count: int
    max_retries: int
    project_id: UUID | None
    segment_id: UUID | None
    user_id: str | None
    worker_id: str | None
    external_handle: str | None
    cancel_requested: bool
    created_at: datetime
    available_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    lease_expires_at: datetime | None = None

    @classmethod
    def from_model(cls, job: JobModel) -> "QueuedJob":
        return cls(
            id=job.id,
            type=JobType(job.type),
            status=JobStatus(job.status),
            priority=job.priority,
            payload=dict(job.payload or {}),
            output=dict(job.output) if job.output is not None else None,
            error=job.error,
            progress=job.progress,
            retry_count=job.retry_count,
            max_retries=job.max_retries,
            project_id=job.project_id,
            segment_id=job.segment_id,
            user_id=job.user_id,
            worker_id=job.worker_id,
            external_handle=job.external_handle,
            cancel_requested=bool(job.cancel_requested),
            created_at=job.created_at,
            available_at=job.available_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            lease_expires_at=job.lease_expires_at,
        )


@dataclass
class QueueStats:
    """Job counts by queue state."""

    waiting: int = 0
    delayed: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "waiting": self.waiting,
            "delayed": self.delayed,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
        }


class JobQueue:
    """
    Durable job queue over the relational store.

    Usage:
        queue = JobQueue(session_factory, settings.queue)
        job_id = await queue.enqueue(JobType.VIDEO_GENERATE, {"prompt": "..."}, priority=5)
        job = await queue.dequeue_next("worker-1")
        await queue.update_progress(job.id, 40)
        await queue.complete(job.id, {"video_url": "..."})
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: QueueSettings,
        clock: Clock = utcnow,
    ) -> None:
        """
        Initialize the queue.

        Args:
            session_factory: Async session factory for the job store
            settings: Retry, retention and priority settings
            clock: Returns the current UTC time; injectable for tests
        """
        self._session_factory = session_factory
        self._settings = settings
        self._clock = clock

    def now(self) -> datetime:
        """Current time on the queue's clock."""
        return self._clock()

    def _transaction(self, operation: str):
        return transaction(self._session_factory, operation)

    def _lease_end(self, now: datetime) -> datetime:
        return now + timedelta(seconds=self._settings.visibility_timeout_seconds)

    async def enqueue(
        self,
        job_type: JobType,
        payload: dict,
        priority: int = 0,
        *,
        project_id: UUID | None = None,
        segment_id: UUID | None = None,
        user_id: str | None = None,
        max_retries: int | None = None,
        session: AsyncSession | None = None,
    ) -> UUID:
        """
        Persist a new PENDING job.

        Args:
            job_type: Kind of work
            payload: Validated type-specific input
            priority: Higher is served first
            project_id: Owning project, if any
            segment_id: Owning segment, if any
            user_id: Opaque submitting user
            max_retries: Override of the configured retry limit
            session: Open session to create the job in, so it commits
                together with the caller's other writes

        Returns:
            UUID: New job id

        Raises:
            PersistenceError: If the job could not be stored
        """
        now = self._clock()
        fields = dict(
            type=job_type,
            status=JobStatus.PENDING,
            priority=priority,
            payload=payload,
            progress=0,
            retry_count=0,
            max_retries=self._settings.max_retries if max_retries is None else max_retries,
            project_id=project_id,
            segment_id=segment_id,
            user_id=user_id,
            cancel_requested=False,
            available_at=now,
            created_at=now,
            updated_at=now,
        )
        if session is not None:
            job = await job_crud.create(session, **fields)
        else:
            async with self._transaction("enqueue") as own_session:
                job = await job_crud.create(own_session, **fields)
        job_id = job.id

        logger.info(
            f"{__name__}:enqueue - Job {job_id} queued",
            extra={"job_type": job_type.value, "priority": priority},
        )
        return job_id

    async def dequeue_next(self, worker_id: str) -> QueuedJob | None:
        """
        Claim the highest-priority eligible job for a worker.

        Ties on priority are broken by earliest creation time. Jobs waiting
        out a retry backoff are not eligible.

        Args:
            worker_id: Claiming worker identifier

        Returns:
            QueuedJob snapshot in ACTIVE state, or None if nothing is eligible
        """
        for _ in range(_MAX_CLAIM_ROUNDS):
            now = self._clock()
            async with self._transaction("dequeue") as session:
                candidates = await job_crud.get_claim_candidates(session, now)
                if not candidates:
                    return None

                for candidate_id in candidates:
                    if await job_crud.try_claim(session, candidate_id, worker_id, now, self._lease_end(now)):
                        job = await job_crud.get_by_id(session, candidate_id)
                        await session.refresh(job)
                        claimed = QueuedJob.from_model(job)
                        logger.info(
                            f"{__name__}:dequeue_next - Job {claimed.id} claimed by {worker_id}"
                        )
                        return claimed
        return None

    async def get(self, job_id: UUID) -> QueuedJob | None:
        """
        Read the latest persisted state of a job.

        Args:
            job_id: Job UUID

        Returns:
            QueuedJob snapshot, or None if unknown
        """
        async with self._transaction("get") as session:
            job = await job_crud.get_by_id(session, job_id)
            return QueuedJob.from_model(job) if job else None

    async def update_progress(self, job_id: UUID, percent: int | float, worker_id: str | None = None) -> bool:
        """
        Report progress of an ACTIVE job and renew its lease.

        A value lower than or equal to the recorded progress leaves the
        progress unchanged but still renews the lease.

        Args:
            job_id: Job UUID
            percent: Progress percentage, clamped to 0-100
            worker_id: Worker holding the job; other workers cannot renew it

        Returns:
            True if the recorded progress increased
        """
        value = max(0, min(100, int(percent)))
        now = self._clock()
        async with self._transaction("update_progress") as session:
            if not await job_crud.extend_lease(session, job_id, self._lease_end(now), now, worker_id=worker_id):
                return False
            return await job_crud.raise_progress(session, job_id, value, now)

    async def record_external_handle(self, job_id: UUID, handle: str, worker_id: str | None = None) -> bool:
        """Store the provider handle on an ACTIVE job and renew its lease."""
        now = self._clock()
        async with self._transaction("record_external_handle") as session:
            if not await job_crud.extend_lease(session, job_id, self._lease_end(now), now, worker_id=worker_id):
                return False
            return await job_crud.set_external_handle(session, job_id, handle, now)

    async def complete(
        self,
        job_id: UUID,
        output: dict,
        worker_id: str | None = None,
        on_applied: Callable[[AsyncSession], Awaitable[None]] | None = None,
    ) -> bool:
        """
        Mark an ACTIVE job completed with output.

        Calling again on a terminal job is a no-op, as is a completion
        from a worker that no longer holds the job.

        Args:
            job_id: Job UUID
            output: Result payload
            worker_id: Worker holding the job
            on_applied: Runs in the completing transaction, only when the
                transition applies; writes it makes commit with the completion

        Returns:
            True if this call applied the transition
        """
        async with self._transaction("complete") as session:
            job = await job_crud.get_by_id(session, job_id)
            if job is None or not job_state.can_transition(JobStatus(job.status), JobStatus.COMPLETED):
                logger.info(f"{__name__}:complete - Ignoring completion of job {job_id}")
                return False
            applied = await job_crud.mark_completed(session, job_id, output, self._clock(), worker_id=worker_id)
            if not applied:
                logger.info(f"{__name__}:complete - Job {job_id} is no longer held by {worker_id}")
                return False
            if on_applied is not None:
                await on_applied(session)

        logger.info(f"{__name__}:complete - Job {job_id} completed")
        await self.prune()
        return True

    async def fail(
        self,
        job_id: UUID,
        error: str,
        retryable: bool = True,
        worker_id: str | None = None,
    ) -> FailOutcome:
        """
        Record a failed attempt of an ACTIVE job.

        With retries left the job goes back to PENDING with retry_count + 1
        and becomes eligible after an exponential backoff delay; otherwise
        it is marked FAILED. Calling on a terminal job, or from a worker
        that no longer holds the job, is a no-op.

        Args:
            job_id: Job UUID
            error: Human-readable failure reason
            retryable: False skips the retry policy for errors a retry cannot fix
            worker_id: Worker holding the job

        Returns:
            FailOutcome describing what was applied
        """
        now = self._clock()
        async with self._transaction("fail") as session:
            job = await job_crud.get_by_id(session, job_id)
            if job is None or JobStatus(job.status) != JobStatus.ACTIVE:
                logger.info(f"{__name__}:fail - Ignoring failure of job {job_id}")
                return FailOutcome.IGNORED
            retry_count, max_retries = job.retry_count, job.max_retries
            outcome = await self._apply_failure(session, job, error, retryable, now, worker_id)

        await self._after_failure(job_id, error, outcome, retry_count, max_retries)
        return outcome

    async def reclaim_expired(self, limit: int = 20) -> list[tuple[QueuedJob, FailOutcome]]:
        """
        Hand ACTIVE jobs whose lease expired back to the retry policy.

        A lease lapses when its worker stops reporting for longer than the
        visibility timeout, typically because the worker crashed. Each
        reclaimed job counts as a failed attempt.

        Args:
            limit: Maximum number of jobs reclaimed per call

        Returns:
            (snapshot taken before reclaiming, outcome) per reclaimed job
        """
        now = self._clock()
        reclaimed: list[tuple[QueuedJob, FailOutcome]] = []
        async with self._transaction("reclaim_expired") as session:
            for job in await job_crud.get_expired_leases(session, now, limit):
                snapshot = QueuedJob.from_model(job)
                outcome = await self._apply_failure(
                    session, job, _LEASE_EXPIRED_ERROR, True, now, snapshot.worker_id
                )
                if outcome is not FailOutcome.IGNORED:
                    reclaimed.append((snapshot, outcome))

        for snapshot, outcome in reclaimed:
            logger.warning(
                f"{__name__}:reclaim_expired - Lease of job {snapshot.id} held by "
                f"{snapshot.worker_id} expired"
            )
            await self._after_failure(
                snapshot.id, _LEASE_EXPIRED_ERROR, outcome, snapshot.retry_count, snapshot.max_retries
            )
        return reclaimed

    async def _apply_failure(
        self,
        session: AsyncSession,
        job: JobModel,
        error: str,
        retryable: bool,
        now: datetime,
        worker_id: str | None,
    ) -> FailOutcome:
        if retryable and job.retry_count < job.max_retries:
            job_state.ensure_transition(JobStatus.ACTIVE, JobStatus.PENDING)
            available_at = job_state.next_available_at(
                now,
                job.retry_count,
                self._settings.backoff_base_seconds,
                self._settings.backoff_max_seconds,
            )
            applied = await job_crud.schedule_retry(session, job.id, available_at, now, worker_id=worker_id)
            return FailOutcome.RETRY_SCHEDULED if applied else FailOutcome.IGNORED

        job_state.ensure_transition(JobStatus.ACTIVE, JobStatus.FAILED)
        applied = await job_crud.mark_failed(session, job.id, error, now, worker_id=worker_id)
        return FailOutcome.FAILED if applied else FailOutcome.IGNORED

    async def _after_failure(
        self,
        job_id: UUID,
        error: str,
        outcome: FailOutcome,
        retry_count: int,
        max_retries: int,
    ) -> None:
        if outcome is FailOutcome.RETRY_SCHEDULED:
            logger.warning(
                f"{__name__}:fail - Job {job_id} failed, retry {retry_count + 1}/{max_retries} "
                f"scheduled: {error}"
            )
        elif outcome is FailOutcome.FAILED:
            logger.error(f"{__name__}:fail - Job {job_id} failed permanently: {error}")
            await self.prune()
        else:
            logger.info(f"{__name__}:fail - Failure of job {job_id} ignored, no longer held")

    async def cancel_job(self, job_id: UUID, reason: str = "Cancelled") -> bool:
        """
        Cancel one PENDING or ACTIVE job.

        Args:
            job_id: Job UUID
            reason: Error recorded on the job

        Returns:
            True if the job was cancelled by this call
        """
        async with self._transaction("cancel_job") as session:
            return await job_crud.mark_failed(
                session,
                job_id,
                reason,
                self._clock(),
                from_statuses=(JobStatus.PENDING, JobStatus.ACTIVE),
                cancel_requested=True,
            )

    async def cancel_project_jobs(self, project_id: UUID, reason: str = "Cancelled") -> list[UUID]:
        """
        Cancel every PENDING or ACTIVE job of a project.

        Jobs are marked FAILED with `reason` and flagged so poll loops
        stop at their next iteration. Unrelated jobs are untouched.

        Args:
            project_id: Project UUID
            reason: Error recorded on each job

        Returns:
            Ids of the jobs cancelled by this call
        """
        now = self._clock()
        cancelled: list[UUID] = []
        async with self._transaction("cancel_project_jobs") as session:
            for job_id in await job_crud.get_open_ids_by_project(session, project_id):
                applied = await job_crud.mark_failed(
                    session,
                    job_id,
                    reason,
                    now,
                    from_statuses=(JobStatus.PENDING, JobStatus.ACTIVE),
                    cancel_requested=True,
                )
                if applied:
                    cancelled.append(job_id)

        logger.info(f"{__name__}:cancel_project_jobs - Cancelled {len(cancelled)} jobs of project {project_id}")
        return cancelled

    async def is_cancel_requested(self, job_id: UUID) -> bool:
        """Whether cancellation was requested for a job (or it vanished)."""
        async with self._transaction("is_cancel_requested") as session:
            return await job_crud.is_cancel_requested(session, job_id)

    async def prune(self) -> int:
        """
        Apply retention limits to terminal jobs.

        Never touches PENDING or ACTIVE jobs.

        Returns:
            Number of jobs deleted
        """
        async with self._transaction("prune") as session:
            removed = await job_crud.prune_terminal(
                session, JobStatus.COMPLETED, self._settings.keep_completed
            )
            removed += await job_crud.prune_terminal(
                session, JobStatus.FAILED, self._settings.keep_failed
            )
        if removed:
            logger.debug(f"{__name__}:prune - Removed {removed} finished jobs")
        return removed

    async def stats(self) -> QueueStats:
        """
        Count jobs by queue state.

        Returns:
            QueueStats with waiting, delayed, active, completed and failed counts
        """
        now = self._clock()
        async with self._transaction("stats") as session:
            counts = await job_crud.count_by_status(session)
            delayed = await job_crud.count_delayed(session, now)

        return QueueStats(
            waiting=counts[JobStatus.PENDING] - delayed,
            delayed=delayed,
            active=counts[JobStatus.ACTIVE],
            completed=counts[JobStatus.COMPLETED],
            failed=counts[JobStatus.FAILED],
        )
