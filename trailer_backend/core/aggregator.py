"""
Project and segment state aggregation.

Segments mirror their most recent video job; projects are summarized
from their segments. Every recompute is a pure function of the rows it
reads, so calling it again (or concurrently with workers) converges on
the same answer. Segment rows of a project are read with one statement
inside one transaction, so a summary never mixes two points in time.

Dependencies: sqlalchemy, trailer_backend.boundary.db, trailer_backend.configs.aggregation
System role: Derived status/progress for segments and projects
"""

import logging
from dataclasses import dataclass
from typing import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from trailer_backend.boundary.db.connection import transaction
from trailer_backend.boundary.db.CRUD.job_crud import job_crud
from trailer_backend.boundary.db.CRUD.project_crud import project_crud
from trailer_backend.boundary.db.CRUD.segment_crud import segment_crud
from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.boundary.db.models.project_model import ProjectStatus
from trailer_backend.configs.aggregation import AggregationSettings
from trailer_backend.core.exceptions import ProjectNotFoundError, SegmentNotFoundError
from trailer_backend.models.project import ProjectProgressResponse, SegmentProgress

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = {JobStatus.ACTIVE.value, ProjectStatus.PROCESSING.value}


@dataclass(frozen=True)
class FailurePolicy:
    """
    When segment failures make the whole project failed.

    The default marks a project failed when strictly more than half of
    its segments failed; a 50/50 split is not a failure unless
    `inclusive` is set.
    """

    threshold: float = 0.5
    inclusive: bool = False

    @classmethod
    def from_settings(cls, settings: AggregationSettings) -> "FailurePolicy":
        return cls(
            threshold=settings.failure_threshold,
            inclusive=settings.failure_threshold_inclusive,
        )

    def is_failed(self, failed: int, total: int) -> bool:
        if total <= 0 or failed <= 0:
            return False
        ratio = failed / total
        return ratio >= self.threshold if self.inclusive else ratio > self.threshold


@dataclass(frozen=True)
class ProjectSummary:
    """Aggregate state of a project."""

    status: ProjectStatus
    overall_progress: int


def _status_value(status: JobStatus | ProjectStatus | str) -> str:
    return status.value if hasattr(status, "value") else str(status)


def summarize_segments(
    segments: Iterable[tuple[JobStatus | str, int]],
    policy: FailurePolicy = FailurePolicy(),
) -> ProjectSummary:
    """
    Summarize segment states into a project state.

    Rules, in order: completed iff every segment completed; failed iff
    the failure policy says so; processing iff any segment is active;
    pending otherwise. A project without segments is pending at 0%.

    Args:
        segments: (status, progress) per segment
        policy: Failure threshold policy

    Returns:
        ProjectSummary with status and integer average progress
    """
    rows = [(_status_value(status), progress or 0) for status, progress in segments]
    if not rows:
        return ProjectSummary(ProjectStatus.PENDING, 0)

    total = len(rows)
    overall = sum(progress for _, progress in rows) // total
    statuses = [status for status, _ in rows]
    failed = statuses.count(JobStatus.FAILED.value)

    if all(status == JobStatus.COMPLETED.value for status in statuses):
        status = ProjectStatus.COMPLETED
    elif policy.is_failed(failed, total):
        status = ProjectStatus.FAILED
    elif any(status in _ACTIVE_VALUES for status in statuses):
        status = ProjectStatus.PROCESSING
    else:
        status = ProjectStatus.PENDING

    return ProjectSummary(status, overall)


_JOB_TO_PROJECT_STATUS = {
    JobStatus.PENDING: ProjectStatus.PENDING,
    JobStatus.ACTIVE: ProjectStatus.PROCESSING,
    JobStatus.COMPLETED: ProjectStatus.COMPLETED,
    JobStatus.FAILED: ProjectStatus.FAILED,
}


class ProgressAggregator:
    """
    Recomputes derived segment and project state from job rows.

    Only reads jobs; writes segment mirror fields and project status
    fields, last write wins.

    Usage:
        aggregator = ProgressAggregator(session_factory, FailurePolicy())
        await aggregator.recompute_segment(segment_id)
        summary = await aggregator.recompute_project(project_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        policy: FailurePolicy | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.policy = policy or FailurePolicy()

    async def recompute_segment(self, segment_id: UUID) -> bool:
        """
        Mirror the most recent job of a segment onto the segment.

        Args:
            segment_id: Segment UUID

        Returns:
            True if the segment was updated, False if it has no job yet

        Raises:
            SegmentNotFoundError: If the segment does not exist
        """
        async with transaction(self._session_factory, "recompute_segment") as session:
            segment = await segment_crud.get_by_id(session, segment_id)
            if segment is None:
                raise SegmentNotFoundError(segment_id)

            job = await job_crud.get_latest_for_segment(session, segment_id)
            if job is None:
                return False

            status = JobStatus(job.status)
            result_url = None
            if status == JobStatus.COMPLETED and job.output:
                result_url = job.output.get("video_url")

            await segment_crud.update_mirror(
                session,
                segment_id,
                status=status,
                progress=job.progress,
                result_url=result_url,
                job_id=job.id,
            )
        return True

    async def recompute_project(self, project_id: UUID) -> ProjectSummary:
        """
        Summarize a project's segments and store the result on the project.

        Args:
            project_id: Project UUID

        Returns:
            ProjectSummary that was written

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        async with transaction(self._session_factory, "recompute_project") as session:
            if not await project_crud.exists(session, project_id):
                raise ProjectNotFoundError(project_id)

            segments = await segment_crud.get_by_project(session, project_id)
            summary = summarize_segments(
                ((segment.status, segment.progress) for segment in segments),
                self.policy,
            )
            await project_crud.update_video_status(
                session,
                project_id,
                status=summary.status,
                overall_progress=summary.overall_progress,
            )

        logger.debug(
            f"{__name__}:recompute_project - Project {project_id}: "
            f"{summary.status.value} {summary.overall_progress}%"
        )
        return summary

    async def recompute_project_segments(self, project_id: UUID) -> ProjectSummary | None:
        """Recompute every segment of a project, then the project; None if it has no segments."""
        async with transaction(self._session_factory, "recompute_project_segments") as session:
            segment_ids = [segment.id for segment in await segment_crud.get_by_project(session, project_id)]
        if not segment_ids:
            return None
        for segment_id in segment_ids:
            await self.recompute_segment(segment_id)
        return await self.recompute_project(project_id)

    async def apply_project_job(
        self,
        project_id: UUID,
        status: JobStatus,
        progress: int,
        video_url: str | None = None,
    ) -> bool:
        """
        Mirror a whole-project video job (one without segments) onto the project.

        A project that has segments derives its state from them, so the
        job is not mirrored there.

        Args:
            project_id: Project UUID
            status: Job status
            progress: Job progress
            video_url: Finished video URL when the job completed

        Returns:
            True if the project was updated
        """
        fields: dict = {
            "status": _JOB_TO_PROJECT_STATUS[status],
            "overall_progress": progress,
        }
        if video_url:
            fields["video_url"] = video_url
        async with transaction(self._session_factory, "apply_project_job") as session:
            if await segment_crud.get_by_project(session, project_id):
                logger.debug(
                    f"{__name__}:apply_project_job - Project {project_id} has segments, "
                    f"leaving its state to them"
                )
                return False
            await project_crud.update_by_id(session, project_id, **fields)
        return True

    async def project_progress(self, project_id: UUID) -> ProjectProgressResponse:
        """
        Read-only progress of a project, safe to poll at high frequency.

        Projects with segments are summarized live from them; a project
        without segments reports its stored status.

        Args:
            project_id: Project UUID

        Returns:
            ProjectProgressResponse

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        async with transaction(self._session_factory, "project_progress") as session:
            project = await project_crud.get_by_id(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            segments = await segment_crud.get_by_project(session, project_id)

        if segments:
            summary = summarize_segments(
                ((segment.status, segment.progress) for segment in segments),
                self.policy,
            )
        else:
            summary = ProjectSummary(ProjectStatus(project.status), project.overall_progress)

        return ProjectProgressResponse(
            project_id=project.id,
            overall_progress=summary.overall_progress,
            status=summary.status.value,
            script_status=_status_value(project.script_status),
            video_url=project.video_url,
            segment_progress=[
                SegmentProgress(
                    segment_id=segment.id,
                    order_index=segment.order_index,
                    status=_status_value(segment.status),
                    progress=segment.progress,
                    result_url=segment.result_url,
                    job_id=segment.job_id,
                )
                for segment in segments
            ],
        )
