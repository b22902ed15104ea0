"""
fal.ai video provider.

Runs text-to-video generations on the Seedance lite endpoint through the
fal queue API. Provider outages degrade gracefully: a failed submit
falls back to a mock handle, and a failed status read is reported as
processing so the poll loop keeps going.

Dependencies: fal_client, httpx, trailer_backend.boundary.gateway
System role: Production video provider adapter
"""

import logging
from typing import Any

import fal_client
import httpx

from trailer_backend.boundary.gateway.base import (
    SEEDANCE_CAPABILITIES,
    ProviderCapabilities,
    VideoGatewayClient,
)
from trailer_backend.boundary.gateway.mock_video_client import (
    MockVideoGatewayClient,
    is_mock_handle,
)
from trailer_backend.models.video import (
    VideoGenerationRequest,
    VideoGenerationResult,
    VideoJobStatus,
    VideoStatusUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "fal-ai/bytedance/seedance/v1/lite/text-to-video"
# Provider progress is not reported while a request runs
IN_PROGRESS_ESTIMATE = 50
# Aspect ratios the endpoint rejects, mapped to the closest accepted one
ASPECT_RATIO_FALLBACKS = {"9:16": "16:9"}


def _is_permanent_error(exc: Exception) -> bool:
    """Client errors other than timeouts and rate limits will not heal on retry."""
    cause = exc if isinstance(exc, httpx.HTTPStatusError) else exc.__cause__
    if not isinstance(cause, httpx.HTTPStatusError):
        return False
    code = cause.response.status_code
    return 400 <= code < 500 and code not in (408, 429)


class FalVideoGatewayClient(VideoGatewayClient):
    """
    Seedance text-to-video through fal.ai.

    Usage:
        client = FalVideoGatewayClient(api_key=settings.gateway.fal_key)
        handle = await client.submit(request)
        update = await client.poll_status(handle)
    """

    provider_name = "fal"

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        fallback: MockVideoGatewayClient | None = None,
        capabilities: ProviderCapabilities = SEEDANCE_CAPABILITIES,
        client: Any = None,
    ) -> None:
        """
        Initialize the fal.ai client.

        Args:
            api_key: fal.ai API key
            endpoint: Model endpoint id
            fallback: Mock provider used when the service is unreachable
            capabilities: Limits reported to callers
            client: Preconfigured fal_client.AsyncClient
        """
        self._endpoint = endpoint
        self._capabilities = capabilities
        self._fallback = fallback or MockVideoGatewayClient(capabilities=capabilities)
        self._client = client or fal_client.AsyncClient(key=api_key)
        self._requests: dict[str, VideoGenerationRequest] = {}
        logger.info(f"{__name__}:__init__ - fal.ai client configured for {endpoint}")

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    @property
    def in_flight_count(self) -> int:
        """Number of fal.ai requests whose details are still held."""
        return len(self._requests)

    async def release(self, handle: str) -> None:
        if is_mock_handle(handle):
            await self._fallback.release(handle)
            return
        self._requests.pop(handle, None)

    def _build_arguments(self, request: VideoGenerationRequest) -> dict:
        aspect_ratio = ASPECT_RATIO_FALLBACKS.get(request.aspect_ratio, request.aspect_ratio)
        if aspect_ratio != request.aspect_ratio:
            logger.warning(
                f"{__name__}:submit - Aspect ratio {request.aspect_ratio} not supported, "
                f"using {aspect_ratio}"
            )

        arguments: dict[str, Any] = {
            "prompt": request.prompt,
            "aspect_ratio": aspect_ratio,
            "duration": request.duration or "5",
            "resolution": request.resolution or "720p",
        }
        if request.camera_fixed is not None:
            arguments["camera_fixed"] = request.camera_fixed
        if request.seed:
            arguments["seed"] = request.seed
        if request.negative_prompt:
            arguments["negative_prompt"] = request.negative_prompt
        return arguments

    async def submit(self, request: VideoGenerationRequest) -> str:
        arguments = self._build_arguments(request)
        try:
            handle = await self._client.submit(self._endpoint, arguments=arguments)
        except Exception as e:
            logger.error(
                f"{__name__}:submit - fal.ai submit failed, falling back to mock: "
                f"{type(e).__name__}: {e}"
            )
            return await self._fallback.submit(request)

        request_id = handle.request_id
        self._requests[request_id] = request
        logger.info(f"{__name__}:submit - fal.ai request submitted: {request_id}")
        return request_id

    async def poll_status(self, handle: str) -> VideoStatusUpdate:
        if is_mock_handle(handle):
            return await self._fallback.poll_status(handle)

        try:
            status = await self._client.status(self._endpoint, handle, with_logs=False)
        except Exception as e:
            if _is_permanent_error(e):
                logger.error(f"{__name__}:poll_status - fal.ai rejected {handle}: {e}")
                self._requests.pop(handle, None)
                return VideoStatusUpdate(status=VideoJobStatus.FAILED, progress=0, message=str(e))
            logger.warning(f"{__name__}:poll_status - Status check failed for {handle}: {e}")
            return VideoStatusUpdate(
                status=VideoJobStatus.PROCESSING,
                progress=IN_PROGRESS_ESTIMATE,
                message="Checking status",
            )

        if isinstance(status, fal_client.Queued):
            return VideoStatusUpdate(
                status=VideoJobStatus.QUEUED,
                progress=0,
                message=f"Queued at position {status.position}",
            )
        if isinstance(status, fal_client.Completed):
            return await self._fetch_result(handle)
        return VideoStatusUpdate(
            status=VideoJobStatus.PROCESSING,
            progress=IN_PROGRESS_ESTIMATE,
            message="Video generation in progress",
        )

    async def _fetch_result(self, handle: str) -> VideoStatusUpdate:
        try:
            data = await self._client.result(self._endpoint, handle)
        except Exception as e:
            if _is_permanent_error(e):
                logger.error(f"{__name__}:poll_status - Generation {handle} failed: {e}")
                self._requests.pop(handle, None)
                return VideoStatusUpdate(status=VideoJobStatus.FAILED, progress=0, message=str(e))
            logger.warning(f"{__name__}:poll_status - Result fetch failed for {handle}: {e}")
            return VideoStatusUpdate(
                status=VideoJobStatus.PROCESSING,
                progress=IN_PROGRESS_ESTIMATE,
                message="Fetching result",
            )

        video = (data or {}).get("video") or {}
        url = video.get("url")
        if not url:
            logger.error(f"{__name__}:poll_status - Result for {handle} has no video URL")
            self._requests.pop(handle, None)
            return VideoStatusUpdate(
                status=VideoJobStatus.FAILED,
                progress=0,
                message="Video result missing video URL",
            )

        request = self._requests.pop(handle, None)
        logger.info(f"{__name__}:poll_status - Video ready for {handle}")
        return VideoStatusUpdate(
            status=VideoJobStatus.COMPLETED,
            progress=100,
            message="Video generation completed",
            result=VideoGenerationResult(
                video_url=url,
                duration=float(request.duration) if request else 5.0,
                resolution=request.resolution if request else "720p",
                file_size=video.get("file_size"),
                metadata={
                    "content_type": video.get("content_type", "video/mp4"),
                    "seed": data.get("seed"),
                },
            ),
        )
