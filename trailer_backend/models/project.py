"""
Project progress schemas.

Dependencies: pydantic
System role: Project generation status API contracts
"""

import uuid

from pydantic import Field

from trailer_backend.models.common import CamelModel


class SegmentProgress(CamelModel):
    """Mirrored state of one segment."""

    segment_id: uuid.UUID
    order_index: int
    status: str
    progress: int = Field(0, ge=0, le=100)
    result_url: str | None = None
    job_id: uuid.UUID | None = None


class ProjectProgressResponse(CamelModel):
    """Aggregate generation progress of a project."""

    project_id: uuid.UUID
    overall_progress: int = Field(0, ge=0, le=100)
    status: str
    segment_progress: list[SegmentProgress] = Field(default_factory=list)
    script_status: str | None = None
    video_url: str | None = None


class GenerateProjectVideoResponse(CamelModel):
    """Response schema for queueing a project's segment videos."""

    project_id: uuid.UUID
    job_ids: list[uuid.UUID]
    segment_ids: list[uuid.UUID]


class CancelProjectResponse(CamelModel):
    """Response schema for a project cancellation."""

    project_id: uuid.UUID
    cancelled_job_ids: list[uuid.UUID]
