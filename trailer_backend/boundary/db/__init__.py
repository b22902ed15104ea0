"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - create_engine_from_settings(), create_session_factory(), init_models()
  - JobModel, SegmentModel, ProjectModel and their status enums
  - job_crud, segment_crud, project_crud: CRUD instances

Dependencies: sqlalchemy, trailer_backend.configs
System role: Database adapter for jobs, segments and project status
"""

from trailer_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow
from trailer_backend.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    init_models,
    transaction,
)
from trailer_backend.boundary.db.models import (
    JobModel,
    JobStatus,
    JobType,
    ProjectModel,
    ProjectStatus,
    ScriptStatus,
    SegmentModel,
)
from trailer_backend.boundary.db.CRUD import (
    BaseCRUD,
    JobCRUD,
    ProjectCRUD,
    SegmentCRUD,
    job_crud,
    project_crud,
    segment_crud,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "utcnow",
    "create_engine_from_settings",
    "create_session_factory",
    "init_models",
    "transaction",
    "JobModel",
    "JobStatus",
    "JobType",
    "ProjectModel",
    "ProjectStatus",
    "ScriptStatus",
    "SegmentModel",
    "BaseCRUD",
    "JobCRUD",
    "ProjectCRUD",
    "SegmentCRUD",
    "job_crud",
    "project_crud",
    "segment_crud",
]
