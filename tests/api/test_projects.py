"""
Tests for project generation endpoints.
"""

from uuid import uuid4

from trailer_backend.core.exceptions import ProjectBusyError, ProjectNotFoundError, ValidationError
from trailer_backend.models.project import ProjectProgressResponse, SegmentProgress


class TestGenerateProjectVideo:
    """Test POST /api/v1/projects/{id}/video."""

    def test_accepted(self, client, mock_generation_service):
        # Arrange
        project_id, job_ids, segment_ids = uuid4(), [uuid4(), uuid4()], [uuid4(), uuid4()]
        mock_generation_service.generate_project_video.return_value = (job_ids, segment_ids)

        # Act
        response = client.post(f"/api/v1/projects/{project_id}/video", headers={"X-User-ID": "user-1"})

        # Assert
        assert response.status_code == 202
        data = response.json()
        assert data["projectId"] == str(project_id)
        assert data["jobIds"] == [str(job_id) for job_id in job_ids]
        assert data["segmentIds"] == [str(segment_id) for segment_id in segment_ids]
        mock_generation_service.generate_project_video.assert_awaited_once_with(project_id, "user-1")

    def test_busy_project_conflicts(self, client, mock_generation_service):
        project_id = uuid4()
        mock_generation_service.generate_project_video.side_effect = ProjectBusyError(project_id)

        response = client.post(f"/api/v1/projects/{project_id}/video")

        assert response.status_code == 409

    def test_missing_script_is_unprocessable(self, client, mock_generation_service):
        mock_generation_service.generate_project_video.side_effect = ValidationError(
            "Project has no script", field="generated_script"
        )

        response = client.post(f"/api/v1/projects/{uuid4()}/video")

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "generated_script"

    def test_unknown_project(self, client, mock_generation_service):
        project_id = uuid4()
        mock_generation_service.generate_project_video.side_effect = ProjectNotFoundError(project_id)

        response = client.post(f"/api/v1/projects/{project_id}/video")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"].lower()


class TestCancelProject:
    """Test POST /api/v1/projects/{id}/cancel."""

    def test_lists_cancelled_jobs(self, client, mock_generation_service):
        project_id, job_id = uuid4(), uuid4()
        mock_generation_service.cancel_project.return_value = [job_id]

        response = client.post(f"/api/v1/projects/{project_id}/cancel")

        assert response.status_code == 200
        assert response.json() == {"projectId": str(project_id), "cancelledJobIds": [str(job_id)]}


class TestProjectProgress:
    """Test GET /api/v1/projects/{id}/progress."""

    def test_returns_camel_case_progress(self, client, mock_status_service):
        # Arrange
        project_id, segment_id = uuid4(), uuid4()
        mock_status_service.get_project_progress.return_value = ProjectProgressResponse(
            project_id=project_id,
            overall_progress=63,
            status="processing",
            script_status="completed",
            segment_progress=[
                SegmentProgress(segment_id=segment_id, order_index=0, status="active", progress=63)
            ],
        )

        # Act
        response = client.get(f"/api/v1/projects/{project_id}/progress")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["overallProgress"] == 63
        assert data["status"] == "processing"
        assert data["scriptStatus"] == "completed"
        assert data["segmentProgress"][0]["segmentId"] == str(segment_id)
        assert data["segmentProgress"][0]["orderIndex"] == 0

    def test_unknown_project(self, client, mock_status_service):
        project_id = uuid4()
        mock_status_service.get_project_progress.side_effect = ProjectNotFoundError(project_id)

        response = client.get(f"/api/v1/projects/{project_id}/progress")

        assert response.status_code == 404
