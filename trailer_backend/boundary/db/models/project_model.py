"""
Project ORM model.

The project row belongs to the surrounding application; this backend only
writes its generation status fields (script status, aggregate video status
and progress, generated script).

Dependencies: sqlalchemy, trailer_backend.boundary.db.base
System role: Aggregate generation state per project
"""

import enum
import uuid

from sqlalchemy import JSON, Enum, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from trailer_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin, enum_values


class ProjectStatus(str, enum.Enum):
    """Aggregate video generation status derived from segments."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ScriptStatus(str, enum.Enum):
    """Script generation status for the project."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProjectModel(Base, UUIDMixin, TimestampMixin):
    """
    Project ORM model.

    Attributes:
        user_id: Opaque owner identifier from the auth provider
        title / description: Project details used for script generation
        status: Aggregate video status (recomputed from segments)
        overall_progress: Integer average of segment progress
        script_status: Script generation status
        generated_script: Latest generated script JSON
        script_job_id: Job that produced the current script
        video_url: Final video location once composed
    """

    __tablename__ = "projects"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=ProjectStatus.PENDING,
    )
    overall_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    script_status: Mapped[ScriptStatus] = mapped_column(
        Enum(ScriptStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=ScriptStatus.PENDING,
    )
    generated_script: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    script_job_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

