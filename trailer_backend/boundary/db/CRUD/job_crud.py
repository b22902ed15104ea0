"""
Job CRUD operations.

Provides Create, Read, Update, Delete operations for JobModel with
queue-specific guarded updates. Every state-changing statement carries a
status guard in its WHERE clause so concurrent writers cannot apply the
same transition twice; callers inspect the returned row count.

Dependencies: sqlalchemy, trailer_backend.boundary.db.models.job_model
System role: Job persistence operations for the durable queue
"""

from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trailer_backend.boundary.db.CRUD.base_crud import BaseCRUD
from trailer_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType


def _owned_by(stmt, worker_id: str | None):
    """Restrict an UPDATE to the worker holding the lease, when one is given."""
    if worker_id is None:
        return stmt
    return stmt.where(JobModel.worker_id == worker_id)


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Extends BaseCRUD with claim, progress and terminal transition
    statements used by the job queue.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    async def get_claim_candidates(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int = 5,
    ) -> Sequence[UUID]:
        """
        Retrieve ids of jobs eligible for dequeue in service order.

        Eligible means PENDING with its backoff delay elapsed. Order is
        priority descending, then creation time ascending. Rows locked by
        another transaction are skipped where the dialect supports it.

        Args:
            session: Async database session
            now: Current time
            limit: Maximum number of candidates

        Returns:
            Sequence of job ids
        """
        stmt = (
            select(JobModel.id)
            .where(JobModel.status == JobStatus.PENDING)
            .where(JobModel.available_at <= now)
            .order_by(JobModel.priority.desc(), JobModel.created_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def try_claim(
        self,
        session: AsyncSession,
        id: UUID,
        worker_id: str,
        now: datetime,
        lease_expires_at: datetime,
    ) -> bool:
        """
        Atomically move a PENDING job to ACTIVE for one worker.

        Args:
            session: Async database session
            id: Job UUID
            worker_id: Claiming worker identifier
            now: Claim time
            lease_expires_at: Time at which an unrenewed claim may be reclaimed

        Returns:
            True if this call won the claim, False if the job was taken
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.PENDING)
            .values(
                status=JobStatus.ACTIVE,
                worker_id=worker_id,
                lease_expires_at=lease_expires_at,
                started_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def raise_progress(
        self,
        session: AsyncSession,
        id: UUID,
        progress: int,
        now: datetime,
    ) -> bool:
        """
        Raise progress of an ACTIVE job; lower or equal values are ignored.

        Args:
            session: Async database session
            id: Job UUID
            progress: New progress percentage (0-100)
            now: Update time

        Returns:
            True if progress changed
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.ACTIVE)
            .where(JobModel.progress < progress)
            .values(progress=progress, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def set_external_handle(
        self,
        session: AsyncSession,
        id: UUID,
        handle: str,
        now: datetime,
    ) -> bool:
        """
        Record the provider handle of an ACTIVE job.

        Args:
            session: Async database session
            id: Job UUID
            handle: Opaque provider job handle
            now: Update time

        Returns:
            True if the handle was stored
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.ACTIVE)
            .values(external_handle=handle, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        output: dict,
        now: datetime,
        worker_id: str | None = None,
    ) -> bool:
        """
        Mark an ACTIVE job as completed with output.

        Args:
            session: Async database session
            id: Job UUID
            output: Job output data
            now: Completion time
            worker_id: Only apply while this worker holds the lease

        Returns:
            True if the transition was applied
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.ACTIVE)
            .values(
                status=JobStatus.COMPLETED,
                output=output,
                progress=100,
                lease_expires_at=None,
                completed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(_owned_by(stmt, worker_id))
        return result.rowcount == 1

    async def schedule_retry(
        self,
        session: AsyncSession,
        id: UUID,
        available_at: datetime,
        now: datetime,
        worker_id: str | None = None,
    ) -> bool:
        """
        Return an ACTIVE job to PENDING with an incremented retry count.

        Args:
            session: Async database session
            id: Job UUID
            available_at: Earliest time the job may be dequeued again
            now: Update time
            worker_id: Only apply while this worker holds the lease

        Returns:
            True if the retry was scheduled
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.ACTIVE)
            .values(
                status=JobStatus.PENDING,
                retry_count=JobModel.retry_count + 1,
                worker_id=None,
                lease_expires_at=None,
                external_handle=None,
                available_at=available_at,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(_owned_by(stmt, worker_id))
        return result.rowcount == 1

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error: str,
        now: datetime,
        from_statuses: Iterable[JobStatus] = (JobStatus.ACTIVE,),
        cancel_requested: bool = False,
        worker_id: str | None = None,
    ) -> bool:
        """
        Mark a job as permanently failed.

        Args:
            session: Async database session
            id: Job UUID
            error: Human-readable failure reason
            now: Failure time
            from_statuses: Statuses the job may be in for the update to apply
            cancel_requested: Also raise the cooperative cancellation flag
            worker_id: Only apply while this worker holds the lease

        Returns:
            True if the transition was applied
        """
        values: dict = {
            "status": JobStatus.FAILED,
            "error": error,
            "worker_id": None,
            "lease_expires_at": None,
            "completed_at": now,
            "updated_at": now,
        }
        if cancel_requested:
            values["cancel_requested"] = True
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status.in_(list(from_statuses)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(_owned_by(stmt, worker_id))
        return result.rowcount == 1

    async def extend_lease(
        self,
        session: AsyncSession,
        id: UUID,
        lease_expires_at: datetime,
        now: datetime,
        worker_id: str | None = None,
    ) -> bool:
        """
        Push back the lease of an ACTIVE job.

        Args:
            session: Async database session
            id: Job UUID
            lease_expires_at: New lease end
            now: Update time
            worker_id: Only apply while this worker holds the lease

        Returns:
            True if the lease was extended
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == id)
            .where(JobModel.status == JobStatus.ACTIVE)
            .values(lease_expires_at=lease_expires_at, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(_owned_by(stmt, worker_id))
        return result.rowcount == 1

    async def get_expired_leases(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int = 20,
    ) -> Sequence[JobModel]:
        """
        Retrieve ACTIVE jobs whose lease ran out.

        Their worker stopped renewing the lease (crashed or lost its
        host), so the job must go back through the retry policy.

        Args:
            session: Async database session
            now: Current time
            limit: Maximum number of jobs

        Returns:
            Sequence of JobModel instances
        """
        stmt = (
            select(JobModel)
            .where(JobModel.status == JobStatus.ACTIVE)
            .where(JobModel.lease_expires_at.is_not(None))
            .where(JobModel.lease_expires_at < now)
            .order_by(JobModel.lease_expires_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_open_ids_by_project(
        self,
        session: AsyncSession,
        project_id: UUID,
    ) -> Sequence[UUID]:
        """
        Retrieve ids of PENDING or ACTIVE jobs for a project.

        Args:
            session: Async database session
            project_id: Project UUID

        Returns:
            Sequence of job ids
        """
        stmt = (
            select(JobModel.id)
            .where(JobModel.project_id == project_id)
            .where(JobModel.status.in_([JobStatus.PENDING, JobStatus.ACTIVE]))
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_open_by_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        job_type: JobType | None = None,
    ) -> int:
        """
        Count PENDING or ACTIVE jobs of a project.

        Args:
            session: Async database session
            project_id: Project UUID
            job_type: Restrict the count to one job type

        Returns:
            Number of open jobs
        """
        stmt = (
            select(func.count())
            .select_from(JobModel)
            .where(JobModel.project_id == project_id)
            .where(JobModel.status.in_([JobStatus.PENDING, JobStatus.ACTIVE]))
        )
        if job_type is not None:
            stmt = stmt.where(JobModel.type == job_type)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def get_latest_for_segment(
        self,
        session: AsyncSession,
        segment_id: UUID,
    ) -> JobModel | None:
        """
        Retrieve the most recently created job for a segment.

        Args:
            session: Async database session
            segment_id: Segment UUID

        Returns:
            JobModel if any job exists for the segment, None otherwise
        """
        stmt = (
            select(JobModel)
            .where(JobModel.segment_id == segment_id)
            .order_by(JobModel.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_cancel_requested(self, session: AsyncSession, id: UUID) -> bool:
        """
        Check the cooperative cancellation flag of a job.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            True if cancellation was requested or the job no longer exists
        """
        stmt = select(JobModel.cancel_requested).where(JobModel.id == id)
        result = await session.execute(stmt)
        flag = result.scalar_one_or_none()
        return True if flag is None else bool(flag)

    async def count_by_status(self, session: AsyncSession) -> dict[JobStatus, int]:
        """
        Count jobs grouped by status.

        Args:
            session: Async database session

        Returns:
            dict mapping each status to its job count
        """
        stmt = select(JobModel.status, func.count()).group_by(JobModel.status)
        result = await session.execute(stmt)
        counts = {status: 0 for status in JobStatus}
        for status, count in result.all():
            counts[JobStatus(status)] = count
        return counts

    async def count_delayed(self, session: AsyncSession, now: datetime) -> int:
        """
        Count PENDING jobs still waiting out a retry backoff.

        Args:
            session: Async database session
            now: Current time

        Returns:
            Number of delayed jobs
        """
        stmt = (
            select(func.count())
            .select_from(JobModel)
            .where(JobModel.status == JobStatus.PENDING)
            .where(JobModel.available_at > now)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def prune_terminal(
        self,
        session: AsyncSession,
        status: JobStatus,
        keep: int,
    ) -> int:
        """
        Delete terminal jobs of one status beyond the newest `keep`.

        Args:
            session: Async database session
            status: COMPLETED or FAILED
            keep: Number of most recently finished jobs to retain

        Returns:
            Number of deleted jobs
        """
        if not status.is_terminal:
            raise ValueError(f"Refusing to prune non-terminal status {status.value}")

        retained = (
            select(JobModel.id)
            .where(JobModel.status == status)
            .order_by(JobModel.completed_at.desc(), JobModel.created_at.desc())
            .limit(keep)
        )
        stmt = (
            delete(JobModel)
            .where(JobModel.status == status)
            .where(JobModel.id.not_in(retained))
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount


job_crud = JobCRUD()
