"""
Job API endpoints.

Routes: GET /jobs/{id}

Dependencies: trailer_backend.application.services, trailer_backend.models
System role: Job status HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from trailer_backend.api.deps import get_status_service
from trailer_backend.api.routers.error_handling import handle_domain_errors
from trailer_backend.application.services import StatusService
from trailer_backend.models.job import JobStatusResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}", response_model=JobStatusResponse)
@handle_domain_errors
async def get_job_status(
    job_id: UUID,
    service: StatusService = Depends(get_status_service),
) -> JobStatusResponse:
    """
    Get job status and progress for frontend polling.

    Always answers 200: an unknown id yields status "not_found" so a
    poller never has to special-case errors. Poll every few seconds
    while the job is pending or active.

    Example Response:
        {
            "jobId": "123e4567-e89b-12d3-a456-426614174000",
            "status": "completed",
            "progress": 100,
            "type": "video-generate",
            "result": {
                "video_url": "https://mock-fal-storage.example.com/videos/mock_fal_1700000000000_ab12cd3.mp4",
                "duration": 5.0,
                "resolution": "720p"
            },
            "error": null
        }
    """
    return await service.get_job_status(job_id)
