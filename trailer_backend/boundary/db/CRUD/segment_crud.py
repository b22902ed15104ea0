"""
Segment CRUD operations.

Provides ordered retrieval and bulk replacement of a project's video
segments, plus the mirror update written by the aggregator.

Dependencies: sqlalchemy, trailer_backend.boundary.db.models.segment_model
System role: Segment persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from trailer_backend.boundary.db.CRUD.base_crud import BaseCRUD
from trailer_backend.boundary.db.models.job_model import JobStatus
from trailer_backend.boundary.db.models.segment_model import SegmentModel


class SegmentCRUD(BaseCRUD[SegmentModel]):
    """CRUD operations for SegmentModel."""

    def __init__(self) -> None:
        """Initialize SegmentCRUD with SegmentModel."""
        super().__init__(SegmentModel)

    async def get_by_project(
        self,
        session: AsyncSession,
        project_id: UUID,
    ) -> Sequence[SegmentModel]:
        """
        Retrieve all segments of a project in playback order.

        Args:
            session: Async database session
            project_id: Project UUID

        Returns:
            Sequence of SegmentModels ordered by order_index
        """
        stmt = (
            select(SegmentModel)
            .where(SegmentModel.project_id == project_id)
            .order_by(SegmentModel.order_index.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def replace_for_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        segments: Sequence[dict],
    ) -> list[SegmentModel]:
        """
        Replace a project's segments with a new contiguous sequence.

        Order indices are assigned 0..n-1 from the position in `segments`,
        so the contiguity invariant holds regardless of the input.

        Args:
            session: Async database session
            project_id: Project UUID
            segments: Field dicts (script_text, visual_prompt) in playback order

        Returns:
            Created SegmentModels in order
        """
        await session.execute(
            delete(SegmentModel)
            .where(SegmentModel.project_id == project_id)
            .execution_options(synchronize_session=False)
        )
        await session.flush()

        created = []
        for index, fields in enumerate(segments):
            segment = SegmentModel(
                project_id=project_id,
                order_index=index,
                status=JobStatus.PENDING,
                progress=0,
                **fields,
            )
            session.add(segment)
            created.append(segment)
        await session.flush()
        return created

    async def update_mirror(
        self,
        session: AsyncSession,
        id: UUID,
        status: JobStatus,
        progress: int,
        result_url: str | None,
        job_id: UUID | None,
    ) -> int:
        """
        Write the job-mirrored fields of a segment.

        Args:
            session: Async database session
            id: Segment UUID
            status: Mirrored job status
            progress: Mirrored job progress
            result_url: Clip URL when the job completed
            job_id: Job the values were taken from

        Returns:
            Number of rows updated
        """
        return await self.update_by_id(
            session,
            id,
            status=status,
            progress=progress,
            result_url=result_url,
            job_id=job_id,
        )


segment_crud = SegmentCRUD()
