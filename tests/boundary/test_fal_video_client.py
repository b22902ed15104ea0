"""
Unit tests for the fal.ai video provider adapter.

The fal AsyncClient is replaced with an AsyncMock; no network calls.

Tests cover:
- Submit arguments and aspect ratio remapping
- Mock fallback when submit fails
- Status mapping for queued, in progress and completed requests
- Transient vs permanent status errors
- Completed results without a video URL
- Per-request details dropped on terminal polls and on release
"""

from unittest.mock import AsyncMock, MagicMock

import fal_client
import httpx
import pytest

from trailer_backend.boundary.gateway.fal_video_client import DEFAULT_ENDPOINT, FalVideoGatewayClient
from trailer_backend.boundary.gateway.mock_video_client import MockVideoGatewayClient, is_mock_handle
from trailer_backend.models.video import VideoGenerationRequest, VideoJobStatus


def _http_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://queue.fal.run/requests/req-1/status")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


@pytest.fixture
def fal():
    """Mock fal_client.AsyncClient."""
    mock = MagicMock()
    mock.submit = AsyncMock(return_value=MagicMock(request_id="req-1"))
    mock.status = AsyncMock()
    mock.result = AsyncMock()
    return mock


@pytest.fixture
def fallback():
    return MockVideoGatewayClient(clock=lambda: 1_700_000_000.0)


@pytest.fixture
def client(fal, fallback):
    return FalVideoGatewayClient(api_key="test-key", fallback=fallback, client=fal)


class TestFalSubmit:
    """Test submission."""

    @pytest.mark.asyncio
    async def test_submit_sends_arguments(self, client, fal):
        # Arrange
        request = VideoGenerationRequest(prompt="A cat playing with yarn", seed=42, camera_fixed=True)

        # Act
        handle = await client.submit(request)

        # Assert
        assert handle == "req-1"
        fal.submit.assert_awaited_once_with(
            DEFAULT_ENDPOINT,
            arguments={
                "prompt": "A cat playing with yarn",
                "aspect_ratio": "16:9",
                "duration": "5",
                "resolution": "720p",
                "camera_fixed": True,
                "seed": 42,
            },
        )

    @pytest.mark.asyncio
    async def test_portrait_is_remapped(self, client, fal):
        await client.submit(VideoGenerationRequest(prompt="A cat", aspect_ratio="9:16"))

        assert fal.submit.await_args.kwargs["arguments"]["aspect_ratio"] == "16:9"

    @pytest.mark.asyncio
    async def test_submit_failure_falls_back_to_mock(self, client, fal):
        fal.submit.side_effect = httpx.ConnectError("connection refused")

        handle = await client.submit(VideoGenerationRequest(prompt="A cat"))

        assert is_mock_handle(handle)

    @pytest.mark.asyncio
    async def test_mock_handles_are_polled_on_the_fallback(self, client, fal):
        update = await client.poll_status("mock_fal_1699999990000_abcdef1")

        assert update.status == VideoJobStatus.COMPLETED
        fal.status.assert_not_awaited()


class TestFalPollStatus:
    """Test status normalization."""

    @pytest.mark.asyncio
    async def test_queued(self, client, fal):
        fal.status.return_value = fal_client.Queued(position=3)

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.QUEUED
        assert update.progress == 0

    @pytest.mark.asyncio
    async def test_in_progress(self, client, fal):
        fal.status.return_value = fal_client.InProgress(logs=None)

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.PROCESSING
        assert update.progress == 50

    @pytest.mark.asyncio
    async def test_completed_fetches_result(self, client, fal):
        # Arrange
        await client.submit(VideoGenerationRequest(prompt="A cat", duration="10", resolution="1080p"))
        fal.status.return_value = fal_client.Completed(logs=None, metrics={})
        fal.result.return_value = {
            "video": {"url": "https://v3.fal.media/files/clip.mp4", "file_size": 2048},
            "seed": 7,
        }

        # Act
        update = await client.poll_status("req-1")

        # Assert
        assert update.status == VideoJobStatus.COMPLETED
        assert update.progress == 100
        assert update.result.video_url == "https://v3.fal.media/files/clip.mp4"
        assert update.result.duration == 10.0
        assert update.result.resolution == "1080p"
        assert update.result.file_size == 2048

    @pytest.mark.asyncio
    async def test_completed_without_url_fails(self, client, fal):
        fal.status.return_value = fal_client.Completed(logs=None, metrics={})
        fal.result.return_value = {"video": {}}

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [httpx.ReadTimeout("timed out"), _http_error(503), _http_error(429)],
    )
    async def test_transient_errors_keep_processing(self, client, fal, error):
        fal.status.side_effect = error

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.PROCESSING
        assert update.progress == 50

    @pytest.mark.asyncio
    async def test_permanent_client_error_fails(self, client, fal):
        fal.status.side_effect = _http_error(404)

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.FAILED

    @pytest.mark.asyncio
    async def test_wrapped_permanent_error_fails(self, client, fal):
        """Errors raised from an HTTPStatusError are classified by their cause."""
        try:
            raise RuntimeError("Unprocessable request") from _http_error(422)
        except RuntimeError as e:
            fal.result.side_effect = e
        fal.status.return_value = fal_client.Completed(logs=None, metrics={})

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.FAILED


class TestFalRequestTracking:
    """Test that per-request details do not outlive the generation."""

    @pytest.mark.asyncio
    async def test_completed_result_drops_request(self, client, fal):
        await client.submit(VideoGenerationRequest(prompt="A cat"))
        fal.status.return_value = fal_client.Completed(logs=None, metrics={})
        fal.result.return_value = {"video": {"url": "https://v3.fal.media/files/clip.mp4"}}

        await client.poll_status("req-1")

        assert client.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_permanent_failure_drops_request(self, client, fal):
        await client.submit(VideoGenerationRequest(prompt="A cat"))
        fal.status.side_effect = _http_error(404)

        update = await client.poll_status("req-1")

        assert update.status == VideoJobStatus.FAILED
        assert client.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_transient_error_keeps_request(self, client, fal):
        await client.submit(VideoGenerationRequest(prompt="A cat"))
        fal.status.side_effect = httpx.ReadTimeout("timed out")

        await client.poll_status("req-1")

        assert client.in_flight_count == 1

    @pytest.mark.asyncio
    async def test_release_drops_abandoned_request(self, client, fal):
        """A generation abandoned mid-poll (timeout, cancellation) is released explicitly."""
        await client.submit(VideoGenerationRequest(prompt="A cat"))

        await client.release("req-1")

        assert client.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_release_of_fallback_handle(self, client, fal, fallback):
        fal.submit.side_effect = httpx.ConnectError("unreachable")
        handle = await client.submit(VideoGenerationRequest(prompt="A cat"))
        assert fallback.in_flight_count == 1

        await client.release(handle)

        assert fallback.in_flight_count == 0
