"""
Generation submission service.

Validates generation requests and turns them into queued jobs. Input
is rejected here, synchronously, so an invalid request never creates a
job. Project segment videos are planned from the project's script:
segments are replaced with a contiguous 0..n-1 sequence and one
prioritized video job is queued per segment in the same transaction.

Dependencies: trailer_backend.core.job_queue, trailer_backend.boundary.db, trailer_backend.boundary.gateway
System role: Job submission orchestration
"""

import logging
from uuid import UUID

from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import async_sessionmaker

from trailer_backend.boundary.db.connection import transaction
from trailer_backend.boundary.db.CRUD.job_crud import job_crud
from trailer_backend.boundary.db.CRUD.project_crud import project_crud
from trailer_backend.boundary.db.CRUD.segment_crud import segment_crud
from trailer_backend.boundary.db.models.job_model import JobStatus, JobType
from trailer_backend.boundary.db.models.project_model import ScriptStatus
from trailer_backend.boundary.gateway.base import (
    ProviderCapabilities,
    scene_to_video_prompt,
    validate_video_input,
)
from trailer_backend.configs.queue import QueueSettings
from trailer_backend.core.aggregator import ProgressAggregator
from trailer_backend.core.exceptions import (
    ProjectBusyError,
    ProjectNotFoundError,
    ValidationError,
)
from trailer_backend.core.job_queue import JobQueue
from trailer_backend.models.script import GeneratedScript, ScriptGenerationInput
from trailer_backend.models.video import VideoGenerationRequest

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Generation submission orchestrator.

    Usage:
        service = GenerationService(queue, aggregator, session_factory, capabilities, settings.queue)
        job_id = await service.submit_video(request, user_id="user-1")
    """

    def __init__(
        self,
        queue: JobQueue,
        aggregator: ProgressAggregator,
        session_factory: async_sessionmaker,
        capabilities: ProviderCapabilities,
        settings: QueueSettings,
    ) -> None:
        """
        Initialize generation service.

        Args:
            queue: Job queue
            aggregator: Project/segment state aggregator
            session_factory: Async session factory for project reads
            capabilities: Limits of the configured video provider
            settings: Queue priorities
        """
        self._queue = queue
        self._aggregator = aggregator
        self._session_factory = session_factory
        self._capabilities = capabilities
        self._settings = settings

    async def _require_project(self, project_id: UUID):
        async with transaction(self._session_factory, "get_project") as session:
            project = await project_crud.get_by_id(session, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def submit_video(
        self,
        request: VideoGenerationRequest,
        user_id: str | None = None,
        project_id: UUID | None = None,
    ) -> UUID:
        """
        Validate and queue a single video generation.

        A project without segments is marked pending; one with segments
        keeps the state its segments give it.

        Args:
            request: Video request
            user_id: Opaque submitting user
            project_id: Project the finished video belongs to

        Returns:
            UUID: Job id

        Raises:
            ValidationError: If the request violates provider limits
            ProjectNotFoundError: If project_id is unknown
        """
        validated = validate_video_input(request, self._capabilities)
        if project_id is not None:
            await self._require_project(project_id)

        job_id = await self._queue.enqueue(
            JobType.VIDEO_GENERATE,
            validated.model_dump(mode="json"),
            priority=self._settings.standalone_video_priority,
            project_id=project_id,
            user_id=user_id,
        )
        if project_id is not None:
            await self._aggregator.apply_project_job(project_id, JobStatus.PENDING, 0)
        return job_id

    async def submit_script_generation(
        self,
        project_id: UUID,
        user_id: str | None,
        script_input: ScriptGenerationInput,
    ) -> UUID:
        """
        Queue script generation for a project.

        Args:
            project_id: Project UUID
            user_id: Opaque submitting user
            script_input: Project details for the writer

        Returns:
            UUID: Job id

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        async with transaction(self._session_factory, "submit_script_generation") as session:
            if not await project_crud.exists(session, project_id):
                raise ProjectNotFoundError(project_id)
            job_id = await self._queue.enqueue(
                JobType.SCRIPT_GENERATE,
                {"input": script_input.model_dump(mode="json")},
                priority=self._settings.script_generate_priority,
                project_id=project_id,
                user_id=user_id,
                session=session,
            )
            await project_crud.update_script_status(
                session, project_id, ScriptStatus.PENDING, script_job_id=job_id
            )
        return job_id

    async def submit_script_refinement(
        self,
        project_id: UUID,
        user_id: str | None,
        feedback: str,
        script: GeneratedScript | None = None,
    ) -> UUID:
        """
        Queue refinement of a project's script.

        Refinements are served ahead of new generations.

        Args:
            project_id: Project UUID
            user_id: Opaque submitting user
            feedback: What to change
            script: Script to refine; defaults to the project's stored script

        Returns:
            UUID: Job id

        Raises:
            ValidationError: If feedback is empty or there is no script
            ProjectNotFoundError: If the project does not exist
        """
        if not feedback or not feedback.strip():
            raise ValidationError("Feedback must not be empty", field="feedback")

        async with transaction(self._session_factory, "submit_script_refinement") as session:
            project = await project_crud.get_by_id(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            if script is None:
                if not project.generated_script:
                    raise ValidationError("Project has no script to refine", field="script")
                script = _parse_script(project.generated_script)

            job_id = await self._queue.enqueue(
                JobType.SCRIPT_REFINE,
                {"script": script.model_dump(mode="json", by_alias=True), "feedback": feedback.strip()},
                priority=self._settings.script_refine_priority,
                project_id=project_id,
                user_id=user_id,
                session=session,
            )
            await project_crud.update_script_status(
                session, project_id, ScriptStatus.PENDING, script_job_id=job_id
            )
        return job_id

    async def generate_project_video(
        self,
        project_id: UUID,
        user_id: str | None = None,
    ) -> tuple[list[UUID], list[UUID]]:
        """
        Plan and queue one video job per scene of the project's script.

        Args:
            project_id: Project UUID
            user_id: Opaque submitting user

        Returns:
            (job_ids, segment_ids) in playback order

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValidationError: If the project has no script scenes
            ProjectBusyError: If segment video jobs are already in flight
        """
        async with transaction(self._session_factory, "generate_project_video") as session:
            project = await project_crud.get_by_id(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            if not project.generated_script:
                raise ValidationError("Project has no script", field="generated_script")

            script = _parse_script(project.generated_script)
            if not script.scenes:
                raise ValidationError("Project script has no scenes", field="generated_script")

            if await job_crud.count_open_by_project(session, project_id, JobType.VIDEO_GENERATE):
                raise ProjectBusyError(project_id)

            segments = await segment_crud.replace_for_project(
                session,
                project_id,
                [
                    {
                        "script_text": scene.voiceover or scene.description,
                        "visual_prompt": scene_to_video_prompt(scene)[: self._capabilities.max_prompt_length],
                    }
                    for scene in script.scenes
                ],
            )

            job_ids = []
            for segment in segments:
                request = validate_video_input(
                    VideoGenerationRequest(prompt=segment.visual_prompt),
                    self._capabilities,
                )
                job_ids.append(
                    await self._queue.enqueue(
                        JobType.VIDEO_GENERATE,
                        request.model_dump(mode="json"),
                        priority=self._settings.segment_video_priority,
                        project_id=project_id,
                        segment_id=segment.id,
                        user_id=user_id,
                        session=session,
                    )
                )
            segment_ids = [segment.id for segment in segments]

        await self._aggregator.recompute_project(project_id)
        logger.info(
            f"{__name__}:generate_project_video - Queued {len(job_ids)} segment jobs "
            f"for project {project_id}"
        )
        return job_ids, segment_ids

    async def cancel_project(self, project_id: UUID, reason: str = "Cancelled by user") -> list[UUID]:
        """
        Cancel every in-flight job of a project.

        Args:
            project_id: Project UUID
            reason: Error recorded on cancelled jobs

        Returns:
            Ids of the cancelled jobs

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = await self._require_project(project_id)
        cancelled = await self._queue.cancel_project_jobs(project_id, reason)

        if project.script_job_id is not None and project.script_job_id in cancelled:
            async with transaction(self._session_factory, "cancel_script") as session:
                await project_crud.update_script_status(session, project_id, ScriptStatus.FAILED)
        if await self._aggregator.recompute_project_segments(project_id) is None:
            await self._mirror_cancelled_project_job(project_id, cancelled)

        logger.info(f"{__name__}:cancel_project - Cancelled {len(cancelled)} jobs of project {project_id}")
        return cancelled

    async def _mirror_cancelled_project_job(self, project_id: UUID, cancelled: list[UUID]) -> None:
        # Whole-project video jobs have no segment to recompute from
        for job_id in cancelled:
            job = await self._queue.get(job_id)
            if job is not None and job.type == JobType.VIDEO_GENERATE and job.segment_id is None:
                await self._aggregator.apply_project_job(project_id, job.status, job.progress)
                return


def _parse_script(data: dict) -> GeneratedScript:
    try:
        return GeneratedScript.model_validate(data)
    except SchemaError as e:
        raise ValidationError("Stored project script is malformed", field="generated_script") from e
