"""
Project generation API endpoints.

Routes: POST /projects/{id}/video, POST /projects/{id}/cancel,
GET /projects/{id}/progress

Dependencies: trailer_backend.application.services, trailer_backend.models
System role: Project video orchestration HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from trailer_backend.api.deps import get_generation_service, get_status_service, get_user_id
from trailer_backend.api.routers.error_handling import handle_domain_errors
from trailer_backend.application.services import GenerationService, StatusService
from trailer_backend.models.project import (
    CancelProjectResponse,
    GenerateProjectVideoResponse,
    ProjectProgressResponse,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post(
    "/{project_id}/video",
    response_model=GenerateProjectVideoResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@handle_domain_errors
async def generate_project_video(
    project_id: UUID,
    user_id: str | None = Depends(get_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> GenerateProjectVideoResponse:
    """
    Queue one video job per scene of the project's script.

    Raises:
        HTTPException(404): Project not found
        HTTPException(409): Segment videos already in progress
        HTTPException(422): Project has no script scenes
    """
    job_ids, segment_ids = await service.generate_project_video(project_id, user_id)
    return GenerateProjectVideoResponse(
        project_id=project_id,
        job_ids=job_ids,
        segment_ids=segment_ids,
    )


@router.post("/{project_id}/cancel", response_model=CancelProjectResponse)
@handle_domain_errors
async def cancel_project(
    project_id: UUID,
    service: GenerationService = Depends(get_generation_service),
) -> CancelProjectResponse:
    """Cancel every pending or active job of a project."""
    cancelled = await service.cancel_project(project_id)
    return CancelProjectResponse(project_id=project_id, cancelled_job_ids=cancelled)


@router.get("/{project_id}/progress", response_model=ProjectProgressResponse)
@handle_domain_errors
async def get_project_progress(
    project_id: UUID,
    service: StatusService = Depends(get_status_service),
) -> ProjectProgressResponse:
    """
    Aggregate generation progress for frontend polling.

    Example Response:
        {
            "projectId": "123e4567-e89b-12d3-a456-426614174000",
            "overallProgress": 63,
            "status": "processing",
            "segmentProgress": [
                {"segmentId": "...", "orderIndex": 0, "status": "completed", "progress": 100, ...},
                {"segmentId": "...", "orderIndex": 1, "status": "active", "progress": 27, ...}
            ]
        }
    """
    return await service.get_project_progress(project_id)
