"""
Video gateway contract.

Every video provider is reached through VideoGatewayClient: submit one
generation, get back an opaque handle, poll the handle for a normalized
status. Provider limits are described by ProviderCapabilities and
enforced by validate_video_input before any job exists.

Dependencies: trailer_backend.models.video, trailer_backend.core.exceptions
System role: Provider-agnostic video generation boundary
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from trailer_backend.core.exceptions import ValidationError
from trailer_backend.models.script import ScriptScene
from trailer_backend.models.video import VideoGenerationRequest, VideoStatusUpdate

DEFAULT_SCENE_PROMPT = "A professional developer presentation"
EMPTY_SCENE_PROMPT = "A professional video presentation"


@dataclass(frozen=True)
class ProviderCapabilities:
    """Enumerated input limits of one video provider."""

    name: str
    aspect_ratios: frozenset[str]
    resolutions: frozenset[str]
    durations: frozenset[str]
    max_prompt_length: int


SEEDANCE_CAPABILITIES = ProviderCapabilities(
    name="seedance",
    aspect_ratios=frozenset({"16:9", "9:16", "1:1", "4:3", "9:21"}),
    resolutions=frozenset({"480p", "720p", "1080p"}),
    durations=frozenset({"5", "10"}),
    max_prompt_length=1000,
)


def validate_video_input(
    request: VideoGenerationRequest,
    capabilities: ProviderCapabilities,
) -> VideoGenerationRequest:
    """
    Check a video request against provider capabilities.

    Args:
        request: Submitted video request
        capabilities: Limits of the provider that will run it

    Returns:
        VideoGenerationRequest: Copy with the prompt stripped

    Raises:
        ValidationError: If the prompt is empty or too long, or an
            enumerated field holds an unsupported value
    """
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise ValidationError("Prompt must not be empty", field="prompt")
    if len(prompt) > capabilities.max_prompt_length:
        raise ValidationError(
            f"Prompt exceeds {capabilities.max_prompt_length} characters",
            field="prompt",
            details={"length": len(prompt)},
        )

    checks = (
        ("duration", request.duration, capabilities.durations),
        ("resolution", request.resolution, capabilities.resolutions),
        ("aspect_ratio", request.aspect_ratio, capabilities.aspect_ratios),
    )
    for field, value, allowed in checks:
        if value not in allowed:
            raise ValidationError(
                f"Unsupported {field} '{value}' for {capabilities.name}",
                field=field,
                details={"allowed": sorted(allowed)},
            )

    return request.model_copy(update={"prompt": prompt})


def scene_to_video_prompt(scene: ScriptScene | dict[str, Any] | None) -> str:
    """
    Derive a text-to-video prompt from a script scene.

    Args:
        scene: Script scene, or its JSON form

    Returns:
        str: "<description> <action> in <setting>, <mood> mood", with
            missing parts left out
    """
    if not scene:
        return EMPTY_SCENE_PROMPT
    if isinstance(scene, ScriptScene):
        scene = scene.model_dump()

    prompt = scene.get("description") or ""
    if scene.get("action"):
        prompt += f" {scene['action']}"
    if scene.get("setting"):
        prompt += f" in {scene['setting']}"
    if scene.get("mood"):
        prompt += f", {scene['mood']} mood"

    return prompt.strip() or DEFAULT_SCENE_PROMPT


class VideoGatewayClient(ABC):
    """Adapter around one remote text-to-video provider."""

    provider_name: str = "video"

    @property
    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        """Input limits of this provider."""

    @abstractmethod
    async def submit(self, request: VideoGenerationRequest) -> str:
        """
        Start one generation.

        Args:
            request: Validated video request

        Returns:
            str: Opaque external handle
        """

    @abstractmethod
    async def poll_status(self, handle: str) -> VideoStatusUpdate:
        """
        Read the provider status of a generation.

        Transient transport errors are reported as processing; only a
        malformed handle or a provider-side permanent failure is failed.

        Args:
            handle: Handle returned by submit

        Returns:
            VideoStatusUpdate with status, progress and, when completed, the result
        """

    async def release(self, handle: str) -> None:
        """
        Drop any per-generation state held for a handle.

        Called once the caller stops polling the handle, whatever the
        outcome (completed, failed, timed out or cancelled).
        """
