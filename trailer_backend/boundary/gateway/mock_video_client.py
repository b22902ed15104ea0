"""
Deterministic mock video provider.

The handle embeds its creation time (mock_fal_<epoch-ms>_<suffix>) and
status is a pure function of the handle age: queued for the first
interval, processing with linear progress until the completion
threshold, completed afterwards. No network calls are made.

Dependencies: trailer_backend.boundary.gateway.base
System role: Offline video provider for development and tests
"""

import logging
import time
import uuid
from typing import Callable

from trailer_backend.boundary.gateway.base import (
    SEEDANCE_CAPABILITIES,
    ProviderCapabilities,
    VideoGatewayClient,
)
from trailer_backend.models.video import (
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoJobStatus,
    VideoStatusUpdate,
)

logger = logging.getLogger(__name__)

MOCK_HANDLE_PREFIX = "mock_fal_"
MOCK_STORAGE_URL = "https://mock-fal-storage.example.com"
MOCK_FILE_SIZE = 15728640
# Progress reached at the end of the processing window
MOCK_PROCESSING_CEILING = 90


def is_mock_handle(handle: str) -> bool:
    return handle.startswith(MOCK_HANDLE_PREFIX)


class MockVideoGatewayClient(VideoGatewayClient):
    """
    Mock provider keyed off elapsed time since submission.

    Request details are kept until release() so repeated polls of a
    completed handle stay identical.

    Usage:
        client = MockVideoGatewayClient()
        handle = await client.submit(request)
        update = await client.poll_status(handle)
    """

    provider_name = "mock"

    def __init__(
        self,
        capabilities: ProviderCapabilities = SEEDANCE_CAPABILITIES,
        queued_seconds: float = 2.0,
        complete_seconds: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the mock provider.

        Args:
            capabilities: Limits reported to callers
            queued_seconds: Age below which a handle is queued
            complete_seconds: Age at which a handle is completed
            clock: Wall clock in epoch seconds; injectable for tests
        """
        if complete_seconds <= queued_seconds:
            raise ValueError("complete_seconds must be greater than queued_seconds")
        self._capabilities = capabilities
        self._queued_seconds = queued_seconds
        self._complete_seconds = complete_seconds
        self._clock = clock
        self._requests: dict[str, VideoGenerationRequest] = {}

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    @property
    def in_flight_count(self) -> int:
        """Number of handles whose request details are still held."""
        return len(self._requests)

    async def submit(self, request: VideoGenerationRequest) -> str:
        handle = f"{MOCK_HANDLE_PREFIX}{int(self._clock() * 1000)}_{uuid.uuid4().hex[:7]}"
        self._requests[handle] = request
        logger.info(f"{__name__}:submit - Mock job created: {handle}")
        return handle

    async def release(self, handle: str) -> None:
        self._requests.pop(handle, None)

    async def poll_status(self, handle: str) -> VideoStatusUpdate:
        if not is_mock_handle(handle):
            return VideoStatusUpdate(
                status=VideoJobStatus.FAILED,
                progress=0,
                message="Invalid job ID",
            )

        now = self._clock()
        try:
            created_at = int(handle.split("_")[2]) / 1000
        except (IndexError, ValueError):
            created_at = now
        age = now - created_at

        if age < self._queued_seconds:
            return VideoStatusUpdate(
                status=VideoJobStatus.QUEUED,
                progress=0,
                message="Video generation queued",
            )

        if age < self._complete_seconds:
            rate = MOCK_PROCESSING_CEILING / (self._complete_seconds - self._queued_seconds)
            progress = min(MOCK_PROCESSING_CEILING, int((age - self._queued_seconds) * rate + 0.5))
            return VideoStatusUpdate(
                status=VideoJobStatus.PROCESSING,
                progress=progress,
                message="Generating video",
            )

        request = self._requests.get(handle)
        return VideoStatusUpdate(
            status=VideoJobStatus.COMPLETED,
            progress=100,
            message="Video generation completed",
            result=VideoGenerationResult(
                video_url=f"{MOCK_STORAGE_URL}/videos/{handle}.mp4",
                duration=float(request.duration) if request else 5.0,
                resolution=request.resolution if request else "720p",
                file_size=MOCK_FILE_SIZE,
                thumbnail_url=f"{MOCK_STORAGE_URL}/thumbnails/{handle}.jpg",
                metadata={
                    "prompt": request.prompt if request else "Mock generated video",
                    "aspect_ratio": request.aspect_ratio if request else "16:9",
                },
            ),
        )
