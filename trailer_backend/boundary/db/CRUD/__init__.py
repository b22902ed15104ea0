"""
CRUD operations package.

Exports CRUD classes and their module-level instances for jobs,
video segments and projects.
"""

from trailer_backend.boundary.db.CRUD.base_crud import BaseCRUD
from trailer_backend.boundary.db.CRUD.job_crud import JobCRUD, job_crud
from trailer_backend.boundary.db.CRUD.project_crud import ProjectCRUD, project_crud
from trailer_backend.boundary.db.CRUD.segment_crud import SegmentCRUD, segment_crud

__all__ = [
    "BaseCRUD",
    "JobCRUD",
    "ProjectCRUD",
    "SegmentCRUD",
    "job_crud",
    "project_crud",
    "segment_crud",
]
