"""
Queue API endpoints.

Routes: GET /queue/stats

Dependencies: trailer_backend.application.services
System role: Queue monitoring HTTP API
"""

from fastapi import APIRouter, Depends

from trailer_backend.api.deps import get_status_service
from trailer_backend.api.routers.error_handling import handle_domain_errors
from trailer_backend.application.services import StatusService
from trailer_backend.models.job import QueueStatsResponse

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("/stats", response_model=QueueStatsResponse)
@handle_domain_errors
async def get_queue_stats(
    service: StatusService = Depends(get_status_service),
) -> QueueStatsResponse:
    """Job counts: waiting, delayed (retry backoff), active, completed, failed."""
    return await service.get_queue_stats()
