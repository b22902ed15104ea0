"""
Video generation schemas.

Request schema for video submissions and the normalized provider
status shape every video gateway returns.

Dependencies: pydantic
System role: Video generation contracts
"""

import enum

from pydantic import BaseModel, Field, field_validator


class VideoJobStatus(str, enum.Enum):
    """Provider-side status of one external generation."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoGenerationRequest(BaseModel):
    """
    Video generation input.

    Enumerated fields are checked against the provider capabilities by
    the submission service, so one provider's limits live in one place.
    """

    prompt: str = Field(..., description="Text prompt describing the clip")
    negative_prompt: str | None = Field(None, description="What the clip should avoid")
    aspect_ratio: str = Field("16:9", description="Output aspect ratio")
    duration: str = Field("5", description="Clip length in seconds")
    resolution: str = Field("720p", description="Output resolution")
    seed: int | None = Field(None, description="Provider sampling seed")
    camera_fixed: bool | None = Field(None, description="Keep the camera static")

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_string(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


class VideoGenerationResult(BaseModel):
    """Finished clip metadata."""

    video_url: str
    duration: float
    resolution: str
    file_size: int | None = None
    thumbnail_url: str | None = None
    metadata: dict = Field(default_factory=dict)


class VideoStatusUpdate(BaseModel):
    """Normalized answer to a provider status poll."""

    status: VideoJobStatus
    progress: int = Field(0, ge=0, le=100)
    message: str | None = None
    result: VideoGenerationResult | None = None
