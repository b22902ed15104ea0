"""
Job ORM model.

Durable record of one unit of asynchronous generation work. The job queue
owns these rows exclusively; workers hold a lease (worker_id) while
processing, and the aggregator only reads them.

Dependencies: sqlalchemy, trailer_backend.boundary.db.base
System role: Durable job queue storage
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from trailer_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin, enum_values, utcnow


class JobType(str, enum.Enum):
    """
    Generation job types.

    SCRIPT_GENERATE: Write a new promotional script for a project
    SCRIPT_REFINE: Rework an existing script using user feedback
    VIDEO_GENERATE: Render one video clip (standalone or one project segment)
    """

    SCRIPT_GENERATE = "script-generate"
    SCRIPT_REFINE = "script-refine"
    VIDEO_GENERATE = "video-generate"


class JobStatus(str, enum.Enum):
    """
    Job execution states.

    PENDING: Waiting in the queue (possibly delayed by retry backoff)
    ACTIVE: Claimed by a worker
    COMPLETED: Finished; output holds the result
    FAILED: Retries exhausted or cancelled; error holds the reason
    """

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobModel(Base, UUIDMixin, TimestampMixin):
    """
    Job ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        type: Job classification enum
        status: Current execution state enum
        priority: Higher value is dequeued first
        payload: Type-specific input (prompt, parameters)
        output: Result payload, set only when completed
        error: Failure reason, set only when failed
        progress: Percentage complete (0-100), never decreases while active
        retry_count / max_retries: Retry bookkeeping
        project_id / segment_id / user_id: Opaque ownership references
        worker_id: Lease owner while active
        lease_expires_at: End of the owner's lease; extended on every progress report
        external_handle: Provider job handle while the generation is in flight
        cancel_requested: Cooperative cancellation flag checked by poll loops
        available_at: Earliest time the job may be dequeued (retry backoff)
        started_at / completed_at: Lifecycle timestamps

    Workflow:
        1. Submission enqueues a PENDING job
        2. A worker claims it (ACTIVE, worker_id and lease set); a job whose
           lease runs out is reclaimed through the retry policy
        3. The worker completes it, or fails it; failures retry with
           backoff until max_retries, then become FAILED
        4. Terminal jobs beyond the retention limits are pruned
    """

    __tablename__ = "generation_jobs"
    __table_args__ = (
        Index("ix_generation_jobs_dequeue", "status", "priority", "created_at"),
        Index("ix_generation_jobs_project", "project_id"),
        Index("ix_generation_jobs_segment", "segment_id"),
        Index("ix_generation_jobs_lease", "status", "lease_expires_at"),
    )

    type: Mapped[JobType] = mapped_column(
        Enum(JobType, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
        default=JobStatus.PENDING,
    )

    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    output: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    project_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    segment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    worker_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_handle: Mapped[str | None] = mapped_column(String(512), nullable=True)
    cancel_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    available_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    lease_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
