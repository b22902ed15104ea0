"""
Script generation schemas.

GeneratedScript is both the structured-output target of the script LLM
and the JSON stored on the project, so it keeps the camelCase keys the
rest of the application reads.

Dependencies: pydantic
System role: Script generation contracts
"""

import uuid
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from trailer_backend.models.common import CamelModel


class ScriptScene(CamelModel):
    """One scene of a promotional video script."""

    id: str | None = Field(None, description="Scene identifier, e.g. scene_1")
    start_time: float = Field(0, description="Scene start in seconds")
    end_time: float = Field(0, description="Scene end in seconds")
    description: str = Field("", description="What the viewer sees")
    voiceover: str = Field("", description="What is spoken during the scene")
    visual_elements: list[str] = Field(default_factory=list)
    transition: str | None = None
    action: str | None = Field(None, description="Main action on screen")
    setting: str | None = Field(None, description="Where the scene takes place")
    mood: str | None = Field(None, description="Emotional tone of the scene")


class GeneratedScript(CamelModel):
    """A complete video script with its scenes in playback order."""

    title: str
    script: str
    scenes: list[ScriptScene] = Field(default_factory=list)
    duration: float = 30
    voiceover: str = ""
    visual_cues: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _default_scene_ids(self) -> "GeneratedScript":
        for index, scene in enumerate(self.scenes, start=1):
            if not scene.id:
                scene.id = f"scene_{index}"
        return self


class ScriptGenerationInput(BaseModel):
    """Project details a script is written from."""

    project_title: str = Field(..., min_length=1, max_length=255)
    project_description: str = Field(..., min_length=1, max_length=4096)
    personal_photo_url: str | None = None
    product_images: list[str] = Field(default_factory=list)
    target_audience: str = "developers and tech enthusiasts"
    key_features: list[str] = Field(default_factory=list)
    tone: Literal["professional", "casual", "energetic", "friendly"] = "professional"
    duration: int = Field(30, gt=0, le=120, description="Target length in seconds")


class ScriptGenerationRequest(ScriptGenerationInput):
    """Request schema for queueing script generation for a project."""

    project_id: uuid.UUID


class RefineScriptRequest(BaseModel):
    """Request schema for queueing a script refinement."""

    project_id: uuid.UUID
    feedback: str = Field(..., min_length=1, max_length=4096)
    script: GeneratedScript | None = Field(
        None,
        description="Script to refine; defaults to the project's stored script",
    )
