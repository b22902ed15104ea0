"""
Gateway client factories.

The real or mock implementation is chosen once here from settings;
callers only ever see the abstract client.

Dependencies: trailer_backend.configs.gateway, trailer_backend.boundary.gateway
System role: Provider selection at construction time
"""

import dataclasses
import logging
import time
from typing import Callable

from trailer_backend.boundary.gateway.base import SEEDANCE_CAPABILITIES, VideoGatewayClient
from trailer_backend.boundary.gateway.fal_video_client import FalVideoGatewayClient
from trailer_backend.boundary.gateway.mock_video_client import MockVideoGatewayClient
from trailer_backend.boundary.gateway.script_client import (
    MockScriptClient,
    OpenAIScriptClient,
    ScriptGatewayClient,
)
from trailer_backend.configs.gateway import GatewaySettings

logger = logging.getLogger(__name__)


def build_video_gateway(
    settings: GatewaySettings,
    clock: Callable[[], float] = time.time,
) -> VideoGatewayClient:
    """
    Build the video gateway for the configured provider.

    Args:
        settings: Gateway settings
        clock: Wall clock for the mock provider

    Returns:
        VideoGatewayClient: fal.ai client, or the mock when mock mode is
            on or no key is configured
    """
    capabilities = SEEDANCE_CAPABILITIES
    if settings.max_prompt_length != capabilities.max_prompt_length:
        capabilities = dataclasses.replace(capabilities, max_prompt_length=settings.max_prompt_length)

    mock = MockVideoGatewayClient(
        capabilities=capabilities,
        queued_seconds=settings.mock_queued_seconds,
        complete_seconds=settings.mock_complete_seconds,
        clock=clock,
    )
    if settings.use_mock_video:
        logger.warning(f"{__name__}:build_video_gateway - Using mock video provider")
        return mock

    return FalVideoGatewayClient(
        api_key=settings.fal_key,
        endpoint=settings.fal_endpoint,
        fallback=mock,
        capabilities=capabilities,
    )


def build_script_gateway(settings: GatewaySettings) -> ScriptGatewayClient:
    """
    Build the script gateway for the configured provider.

    Args:
        settings: Gateway settings

    Returns:
        ScriptGatewayClient: OpenAI client, or the mock when mock mode is
            on or no key is configured
    """
    if settings.use_mock_script:
        logger.warning(f"{__name__}:build_script_gateway - Using mock script provider")
        return MockScriptClient()

    return OpenAIScriptClient(
        api_key=settings.openai_api_key,
        model_name=settings.script_model,
        temperature=settings.script_temperature,
    )
