"""
Job domain schemas.

Request/response schemas for job tracking.

Dependencies: pydantic
System role: Job status API contracts
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from trailer_backend.models.common import CamelModel

NOT_FOUND_STATUS = "not_found"


class SubmitJobResponse(CamelModel):
    """Response schema for an accepted submission."""

    job_id: uuid.UUID
    status: str = "pending"


class JobStatusResponse(CamelModel):
    """
    Latest persisted state of a job.

    `status` is one of pending, active, completed, failed, or not_found
    for an unknown id, so every poll has a well-defined answer.
    `retry_pending` marks a pending job still waiting out its backoff.
    """

    job_id: uuid.UUID
    status: str
    progress: int = Field(0, ge=0, le=100)
    type: str | None = None
    result: dict | None = None
    error: str | None = None
    retry_count: int = 0
    max_retries: int = 0
    retry_pending: bool = False
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def not_found(cls, job_id: uuid.UUID) -> "JobStatusResponse":
        return cls(job_id=job_id, status=NOT_FOUND_STATUS)


class QueueStatsResponse(BaseModel):
    """Job counts by queue state."""

    waiting: int
    delayed: int
    active: int
    completed: int
    failed: int
