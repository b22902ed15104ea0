"""
Pydantic request/response schemas.

Dependencies: pydantic
System role: API and gateway data contracts
"""

from trailer_backend.models.job import JobStatusResponse, QueueStatsResponse, SubmitJobResponse
from trailer_backend.models.project import (
    CancelProjectResponse,
    GenerateProjectVideoResponse,
    ProjectProgressResponse,
    SegmentProgress,
)
from trailer_backend.models.script import (
    GeneratedScript,
    RefineScriptRequest,
    ScriptGenerationInput,
    ScriptGenerationRequest,
    ScriptScene,
)
from trailer_backend.models.video import (
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoJobStatus,
    VideoStatusUpdate,
)

__all__ = [
    "JobStatusResponse",
    "QueueStatsResponse",
    "SubmitJobResponse",
    "CancelProjectResponse",
    "GenerateProjectVideoResponse",
    "ProjectProgressResponse",
    "SegmentProgress",
    "GeneratedScript",
    "RefineScriptRequest",
    "ScriptGenerationInput",
    "ScriptGenerationRequest",
    "ScriptScene",
    "VideoGenerationRequest",
    "VideoGenerationResult",
    "VideoJobStatus",
    "VideoStatusUpdate",
]
