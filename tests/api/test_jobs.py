"""
Tests for job status and queue stats endpoints.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from trailer_backend.api.deps import get_status_service
from trailer_backend.application.services import StatusService
from trailer_backend.core.exceptions import PersistenceError
from trailer_backend.core.job_queue import QueueStats
from trailer_backend.models.job import JobStatusResponse, QueueStatsResponse


class TestGetJobStatus:
    """Test GET /api/v1/jobs/{job_id}."""

    def test_completed_job(self, client, mock_status_service):
        # Arrange
        job_id = uuid4()
        mock_status_service.get_job_status.return_value = JobStatusResponse(
            job_id=job_id,
            status="completed",
            progress=100,
            type="video-generate",
            result={"video_url": "https://cdn.example.com/clip.mp4"},
            completed_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

        # Act
        response = client.get(f"/api/v1/jobs/{job_id}")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["jobId"] == str(job_id)
        assert data["status"] == "completed"
        assert data["progress"] == 100
        assert data["result"]["video_url"] == "https://cdn.example.com/clip.mp4"
        mock_status_service.get_job_status.assert_awaited_once_with(job_id)

    def test_unknown_job_is_not_an_error(self, app, client):
        """An unknown id answers 200 with status not_found."""
        queue = AsyncMock()
        queue.get.return_value = None
        app.dependency_overrides[get_status_service] = lambda: StatusService(queue, AsyncMock())
        job_id = uuid4()

        response = client.get(f"/api/v1/jobs/{job_id}")

        assert response.status_code == 200
        assert response.json()["status"] == "not_found"
        assert response.json()["jobId"] == str(job_id)

    def test_invalid_uuid(self, client, mock_status_service):
        response = client.get("/api/v1/jobs/not-a-uuid")

        assert response.status_code == 422

    def test_store_outage_is_503(self, client, mock_status_service):
        mock_status_service.get_job_status.side_effect = PersistenceError("down", operation="get")

        response = client.get(f"/api/v1/jobs/{uuid4()}")

        assert response.status_code == 503


class TestQueueStats:
    """Test GET /api/v1/queue/stats."""

    def test_returns_counts(self, app, client):
        queue = AsyncMock()
        queue.stats.return_value = QueueStats(waiting=2, delayed=1, active=1, completed=5, failed=0)
        app.dependency_overrides[get_status_service] = lambda: StatusService(queue, AsyncMock())

        response = client.get("/api/v1/queue/stats")

        assert response.status_code == 200
        assert response.json() == QueueStatsResponse(
            waiting=2, delayed=1, active=1, completed=5, failed=0
        ).model_dump()
