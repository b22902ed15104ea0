"""
AI provider gateways.

Dependencies: fal_client, langchain_openai
System role: Video and script provider adapters
"""

from trailer_backend.boundary.gateway.base import (
    SEEDANCE_CAPABILITIES,
    ProviderCapabilities,
    VideoGatewayClient,
    scene_to_video_prompt,
    validate_video_input,
)
from trailer_backend.boundary.gateway.factory import build_script_gateway, build_video_gateway
from trailer_backend.boundary.gateway.fal_video_client import FalVideoGatewayClient
from trailer_backend.boundary.gateway.mock_video_client import MockVideoGatewayClient
from trailer_backend.boundary.gateway.script_client import (
    MockScriptClient,
    OpenAIScriptClient,
    ScriptGatewayClient,
)

__all__ = [
    "SEEDANCE_CAPABILITIES",
    "ProviderCapabilities",
    "VideoGatewayClient",
    "scene_to_video_prompt",
    "validate_video_input",
    "build_script_gateway",
    "build_video_gateway",
    "FalVideoGatewayClient",
    "MockVideoGatewayClient",
    "MockScriptClient",
    "OpenAIScriptClient",
    "ScriptGatewayClient",
]
