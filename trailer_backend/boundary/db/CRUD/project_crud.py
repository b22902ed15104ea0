"""
Project CRUD operations.

The project row is owned by the surrounding application; these helpers
touch only its generation status fields.

Dependencies: sqlalchemy, trailer_backend.boundary.db.models.project_model
System role: Project status persistence operations
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from trailer_backend.boundary.db.CRUD.base_crud import BaseCRUD
from trailer_backend.boundary.db.models.project_model import (
    ProjectModel,
    ProjectStatus,
    ScriptStatus,
)


class ProjectCRUD(BaseCRUD[ProjectModel]):
    """CRUD operations for ProjectModel generation fields."""

    def __init__(self) -> None:
        """Initialize ProjectCRUD with ProjectModel."""
        super().__init__(ProjectModel)

    async def update_video_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: ProjectStatus,
        overall_progress: int,
    ) -> int:
        """
        Write the aggregate video status and progress.

        Args:
            session: Async database session
            id: Project UUID
            status: Aggregate status
            overall_progress: Integer average of segment progress

        Returns:
            Number of rows updated
        """
        return await self.update_by_id(
            session,
            id,
            status=status,
            overall_progress=overall_progress,
        )

    async def update_script_status(
        self,
        session: AsyncSession,
        id: UUID,
        script_status: ScriptStatus,
        script_job_id: UUID | None = None,
    ) -> int:
        """
        Write the script generation status.

        Args:
            session: Async database session
            id: Project UUID
            script_status: New script status
            script_job_id: Job that drove the change

        Returns:
            Number of rows updated
        """
        fields: dict = {"script_status": script_status}
        if script_job_id is not None:
            fields["script_job_id"] = script_job_id
        return await self.update_by_id(session, id, **fields)

    async def save_script(
        self,
        session: AsyncSession,
        id: UUID,
        script: dict,
        script_job_id: UUID,
    ) -> int:
        """
        Store a generated script and mark script generation completed.

        Args:
            session: Async database session
            id: Project UUID
            script: Generated script JSON
            script_job_id: Job that produced the script

        Returns:
            Number of rows updated
        """
        return await self.update_by_id(
            session,
            id,
            generated_script=script,
            script_status=ScriptStatus.COMPLETED,
            script_job_id=script_job_id,
        )


project_crud = ProjectCRUD()
