"""
Job handlers and the worker pool.

Dependencies: trailer_backend.core.job_queue, trailer_backend.boundary.gateway
System role: Job execution
"""

from trailer_backend.core.workers.handlers import (
    JobHandler,
    JobReporter,
    ScriptGenerationHandler,
    ScriptRefinementHandler,
    VideoGenerationHandler,
)
from trailer_backend.core.workers.worker_pool import WorkerPool

__all__ = [
    "JobHandler",
    "JobReporter",
    "ScriptGenerationHandler",
    "ScriptRefinementHandler",
    "VideoGenerationHandler",
    "WorkerPool",
]
