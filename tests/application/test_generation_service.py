"""
Tests for GenerationService against the SQLite job store.

Tests cover:
- Synchronous rejection of invalid video input (no job created)
- Segment planning: contiguous order, derived prompts, one job per segment
- Busy projects and missing scripts
- Script generation/refinement submission and project script status
- Project cancellation
"""

import uuid

import pytest

from trailer_backend.application.services import GenerationService
from trailer_backend.boundary.db.connection import transaction
from trailer_backend.boundary.db.CRUD.project_crud import project_crud
from trailer_backend.boundary.db.CRUD.segment_crud import segment_crud
from trailer_backend.boundary.db.models.job_model import JobStatus, JobType
from trailer_backend.boundary.db.models.project_model import ProjectStatus, ScriptStatus
from trailer_backend.boundary.gateway.base import SEEDANCE_CAPABILITIES
from trailer_backend.core.exceptions import ProjectBusyError, ProjectNotFoundError, ValidationError
from trailer_backend.models.script import ScriptGenerationInput
from trailer_backend.models.video import VideoGenerationRequest


@pytest.fixture
def service(queue, aggregator, session_factory, settings):
    return GenerationService(queue, aggregator, session_factory, SEEDANCE_CAPABILITIES, settings.queue)


async def _segments(session_factory, project_id):
    async with transaction(session_factory, "segments") as session:
        return list(await segment_crud.get_by_project(session, project_id))


async def _project(session_factory, project_id):
    async with transaction(session_factory, "project") as session:
        return await project_crud.get_by_id(session, project_id)


class TestSubmitVideo:
    """Test single video submission."""

    @pytest.mark.asyncio
    async def test_valid_request_is_queued(self, service, queue):
        # Arrange
        request = VideoGenerationRequest(prompt="  A cat playing with yarn ", duration="5", resolution="720p")

        # Act
        job_id = await service.submit_video(request, user_id="user-1")

        # Assert
        job = await queue.get(job_id)
        assert job.type == JobType.VIDEO_GENERATE
        assert job.status == JobStatus.PENDING
        assert job.priority == 5
        assert job.payload["prompt"] == "A cat playing with yarn"
        assert job.payload["duration"] == "5"

    @pytest.mark.asyncio
    async def test_invalid_duration_creates_no_job(self, service, queue):
        with pytest.raises(ValidationError) as exc_info:
            await service.submit_video(VideoGenerationRequest(prompt="A cat", duration="7"))

        assert exc_info.value.field == "duration"
        assert (await queue.stats()).waiting == 0

    @pytest.mark.asyncio
    async def test_unknown_project_is_rejected(self, service, queue):
        with pytest.raises(ProjectNotFoundError):
            await service.submit_video(VideoGenerationRequest(prompt="A cat"), project_id=uuid.uuid4())

        assert (await queue.stats()).waiting == 0

    @pytest.mark.asyncio
    async def test_project_video_marks_project_pending(self, service, queue, session_factory, create_project):
        project_id = await create_project()

        job_id = await service.submit_video(VideoGenerationRequest(prompt="A cat"), project_id=project_id)

        assert (await queue.get(job_id)).project_id == project_id
        project = await _project(session_factory, project_id)
        assert project.status == ProjectStatus.PENDING
        assert project.overall_progress == 0

    @pytest.mark.asyncio
    async def test_project_video_leaves_segmented_project_alone(
        self, service, queue, aggregator, session_factory, create_project, sample_script
    ):
        """A project built from segments keeps the state its segments give it."""
        # Arrange
        project_id = await create_project(generated_script=sample_script)
        job_ids, _ = await service.generate_project_video(project_id)
        for _ in job_ids:
            job = await queue.dequeue_next("worker-1")
            await queue.complete(job.id, {"video_url": f"https://cdn.example.com/{job.id}.mp4"})
        await aggregator.recompute_project_segments(project_id)

        # Act
        job_id = await service.submit_video(VideoGenerationRequest(prompt="A cat"), project_id=project_id)

        # Assert
        project = await _project(session_factory, project_id)
        assert (await queue.get(job_id)).status == JobStatus.PENDING
        assert project.status == ProjectStatus.COMPLETED
        assert project.overall_progress == 100


class TestGenerateProjectVideo:
    """Test segment planning."""

    @pytest.mark.asyncio
    async def test_one_job_per_scene_in_order(self, service, queue, session_factory, create_project, sample_script):
        # Arrange
        project_id = await create_project(generated_script=sample_script)

        # Act
        job_ids, segment_ids = await service.generate_project_video(project_id, user_id="user-1")

        # Assert
        segments = await _segments(session_factory, project_id)
        assert [segment.id for segment in segments] == segment_ids
        assert [segment.order_index for segment in segments] == [0, 1, 2]
        assert segments[0].visual_prompt == (
            "A developer at a glowing monitor typing quickly in a night office, focused mood"
        )
        assert segments[0].script_text == "Meet DevLens."
        assert all(segment.status == JobStatus.PENDING for segment in segments)

        jobs = [await queue.get(job_id) for job_id in job_ids]
        assert [job.segment_id for job in jobs] == segment_ids
        assert all(job.project_id == project_id for job in jobs)
        assert all(job.priority == 10 for job in jobs)
        assert jobs[2].payload["prompt"] == "The DevLens logo, confident mood"

        project = await _project(session_factory, project_id)
        assert project.status == ProjectStatus.PENDING
        assert project.overall_progress == 0

    @pytest.mark.asyncio
    async def test_busy_project_is_rejected(self, service, create_project, sample_script):
        project_id = await create_project(generated_script=sample_script)
        await service.generate_project_video(project_id)

        with pytest.raises(ProjectBusyError):
            await service.generate_project_video(project_id)

    @pytest.mark.asyncio
    async def test_regeneration_replaces_segments(
        self, service, queue, session_factory, create_project, sample_script
    ):
        """Once earlier jobs are finished, a new run starts from a fresh 0..n-1 sequence."""
        # Arrange
        project_id = await create_project(generated_script=sample_script)
        first_jobs, first_segments = await service.generate_project_video(project_id)
        for job_id in first_jobs:
            await queue.dequeue_next("worker-1")
            await queue.complete(job_id, {"video_url": f"https://cdn.example.com/{job_id}.mp4"})

        # Act
        _, second_segments = await service.generate_project_video(project_id)

        # Assert
        segments = await _segments(session_factory, project_id)
        assert [segment.id for segment in segments] == second_segments
        assert not set(first_segments) & set(second_segments)
        assert [segment.order_index for segment in segments] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_project_without_script(self, service, create_project):
        project_id = await create_project()

        with pytest.raises(ValidationError):
            await service.generate_project_video(project_id)

    @pytest.mark.asyncio
    async def test_script_without_scenes(self, service, create_project):
        project_id = await create_project(generated_script={"title": "T", "script": "S", "scenes": []})

        with pytest.raises(ValidationError):
            await service.generate_project_video(project_id)

    @pytest.mark.asyncio
    async def test_unknown_project(self, service):
        with pytest.raises(ProjectNotFoundError):
            await service.generate_project_video(uuid.uuid4())


class TestScriptSubmission:
    """Test script job submission."""

    @pytest.mark.asyncio
    async def test_generation_marks_script_pending(self, service, queue, session_factory, create_project):
        # Arrange
        project_id = await create_project()
        script_input = ScriptGenerationInput(project_title="DevLens", project_description="AI code review")

        # Act
        job_id = await service.submit_script_generation(project_id, "user-1", script_input)

        # Assert
        job = await queue.get(job_id)
        project = await _project(session_factory, project_id)
        assert job.type == JobType.SCRIPT_GENERATE
        assert job.payload["input"]["project_title"] == "DevLens"
        assert project.script_status == ScriptStatus.PENDING
        assert project.script_job_id == job_id

    @pytest.mark.asyncio
    async def test_refinement_uses_stored_script(self, service, queue, create_project, sample_script):
        project_id = await create_project(generated_script=sample_script)

        job_id = await service.submit_script_refinement(project_id, None, "  Make it punchier ")

        job = await queue.get(job_id)
        assert job.type == JobType.SCRIPT_REFINE
        assert job.priority == 10
        assert job.payload["feedback"] == "Make it punchier"
        assert job.payload["script"]["title"] == "DevLens in 30 seconds"
        assert job.payload["script"]["scenes"][1]["id"] == "scene_2"

    @pytest.mark.asyncio
    async def test_refinement_needs_feedback(self, service, create_project, sample_script):
        project_id = await create_project(generated_script=sample_script)

        with pytest.raises(ValidationError):
            await service.submit_script_refinement(project_id, None, "   ")

    @pytest.mark.asyncio
    async def test_refinement_needs_a_script(self, service, create_project):
        project_id = await create_project()

        with pytest.raises(ValidationError):
            await service.submit_script_refinement(project_id, None, "Shorter")


class TestCancelProject:
    """Test project cancellation through the service."""

    @pytest.mark.asyncio
    async def test_cancelled_script_job_fails_script(self, service, queue, session_factory, create_project):
        project_id = await create_project()
        job_id = await service.submit_script_generation(
            project_id, None, ScriptGenerationInput(project_title="A", project_description="B")
        )

        cancelled = await service.cancel_project(project_id)

        project = await _project(session_factory, project_id)
        assert cancelled == [job_id]
        assert project.script_status == ScriptStatus.FAILED
        assert (await queue.get(job_id)).status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_cancelled_project_video_fails_project(self, service, session_factory, create_project):
        project_id = await create_project()
        await service.submit_video(VideoGenerationRequest(prompt="A cat"), project_id=project_id)

        await service.cancel_project(project_id)

        project = await _project(session_factory, project_id)
        assert project.status == ProjectStatus.FAILED
        assert project.script_status == ScriptStatus.PENDING
