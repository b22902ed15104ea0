"""
Video segment ORM model.

One slice of a multi-part project video. Status, progress and result URL
mirror the most recent video-generation job for the segment.

Dependencies: sqlalchemy, trailer_backend.boundary.db.base
System role: Per-segment generation state
"""

import uuid

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from trailer_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin, enum_values
from trailer_backend.boundary.db.models.job_model import JobStatus


class SegmentModel(Base, UUIDMixin, TimestampMixin):
    """
    Video segment ORM model.

    Attributes:
        project_id: Owning project
        order_index: 0-based playback order, unique and contiguous per project
        script_text: Voiceover text for the scene
        visual_prompt: Prompt derived from the scene, sent to the video provider
        status: Mirror of the latest job status
        progress: Mirror of the latest job progress
        result_url: Generated clip URL, set once the job completes
        job_id: Latest video-generation job (no FK; jobs are pruned)
    """

    __tablename__ = "video_segments"
    __table_args__ = (
        UniqueConstraint("project_id", "order_index", name="uq_video_segments_project_order"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    script_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    visual_prompt: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
        default=JobStatus.PENDING,
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    result_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    job_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

