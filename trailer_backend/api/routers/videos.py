"""
Video generation API endpoints.

Routes: POST /videos

Dependencies: trailer_backend.application.services, trailer_backend.models
System role: Video submission HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from trailer_backend.api.deps import get_generation_service, get_user_id
from trailer_backend.api.routers.error_handling import handle_domain_errors
from trailer_backend.application.services import GenerationService
from trailer_backend.models.job import SubmitJobResponse
from trailer_backend.models.video import VideoGenerationRequest

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=SubmitJobResponse, status_code=status.HTTP_202_ACCEPTED)
@handle_domain_errors
async def submit_video(
    request: VideoGenerationRequest,
    project_id: UUID | None = Query(default=None, description="Project the video belongs to"),
    user_id: str | None = Depends(get_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> SubmitJobResponse:
    """
    Queue a single text-to-video generation.

    Input is validated against the provider's limits before a job is
    created; an invalid duration, resolution, aspect ratio or prompt is
    rejected with 422 and nothing is queued.

    Returns:
        SubmitJobResponse: Job id to poll at GET /jobs/{job_id}
    """
    job_id = await service.submit_video(request, user_id=user_id, project_id=project_id)
    return SubmitJobResponse(job_id=job_id)
