"""
Database models package.

Exports:
  - JobModel, JobStatus, JobType: Generation job ORM model and enums
  - ProjectModel, ProjectStatus, ScriptStatus: Project ORM model and enums
  - SegmentModel: Video segment ORM model

Dependencies: sqlalchemy, trailer_backend.boundary.db.base
System role: Database model definitions for domain entities
"""

from trailer_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from trailer_backend.boundary.db.models.project_model import (
    ProjectModel,
    ProjectStatus,
    ScriptStatus,
)
from trailer_backend.boundary.db.models.segment_model import SegmentModel

__all__ = [
    "JobModel",
    "JobStatus",
    "JobType",
    "ProjectModel",
    "ProjectStatus",
    "ScriptStatus",
    "SegmentModel",
]
