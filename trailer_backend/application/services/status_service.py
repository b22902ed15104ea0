"""
Status query service.

Read side for polling clients. Every call reads the latest persisted
state and never mutates anything, so it is safe to call at high
frequency.

Dependencies: trailer_backend.core.job_queue, trailer_backend.core.aggregator
System role: Job and project status queries
"""

from datetime import datetime
from typing import Callable
from uuid import UUID

from trailer_backend.boundary.db.base import utcnow
from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.core import job_state
from trailer_backend.core.aggregator import ProgressAggregator
from trailer_backend.core.job_queue import JobQueue
from trailer_backend.models.job import JobStatusResponse, QueueStatsResponse
from trailer_backend.models.project import ProjectProgressResponse


class StatusService:
    """Job and project status queries."""

    def __init__(
        self,
        queue: JobQueue,
        aggregator: ProgressAggregator,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._queue = queue
        self._aggregator = aggregator
        self._clock = clock

    async def get_job_status(self, job_id: UUID) -> JobStatusResponse:
        """
        Latest state of a job.

        Args:
            job_id: Job UUID

        Returns:
            JobStatusResponse; status is "not_found" for an unknown id
        """
        job = await self._queue.get(job_id)
        if job is None:
            return JobStatusResponse.not_found(job_id)

        return JobStatusResponse(
            job_id=job.id,
            status=job.status.value,
            progress=job.progress,
            type=job.type.value,
            result=job.output if job.status == JobStatus.COMPLETED else None,
            error=job.error if job.status == JobStatus.FAILED else None,
            retry_count=job.retry_count,
            max_retries=job.max_retries,
            retry_pending=job_state.is_retry_pending(job.status, job.available_at, self._clock()),
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )

    async def get_project_progress(self, project_id: UUID) -> ProjectProgressResponse:
        """
        Aggregate progress of a project and its segments.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        return await self._aggregator.project_progress(project_id)

    async def get_queue_stats(self) -> QueueStatsResponse:
        """Job counts by queue state."""
        stats = await self._queue.stats()
        return QueueStatsResponse(**stats.to_dict())
