"""
Job handlers.

One handler per job type turns a claimed job into an output dict or an
exception. Handlers report progress and provider handles through a
JobReporter and never touch job rows directly; the worker pool records
the outcome.

Dependencies: trailer_backend.boundary.gateway, trailer_backend.core.poll_loop
System role: Per-type job execution logic
"""

import logging
from abc import ABC, abstractmethod
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trailer_backend.boundary.db.connection import transaction
from trailer_backend.boundary.db.CRUD.job_crud import job_crud
from trailer_backend.boundary.db.CRUD.project_crud import project_crud
from trailer_backend.boundary.db.models.job_model import JobType
from trailer_backend.boundary.db.models.project_model import ScriptStatus
from trailer_backend.boundary.gateway.base import VideoGatewayClient, validate_video_input
from trailer_backend.boundary.gateway.script_client import ScriptGatewayClient
from trailer_backend.core.exceptions import JobCancelledError, ProviderJobFailedError, ValidationError
from trailer_backend.core.job_queue import QueuedJob
from trailer_backend.core.poll_loop import PollLoop
from trailer_backend.models.script import GeneratedScript, ScriptGenerationInput
from trailer_backend.models.video import VideoGenerationRequest, VideoStatusUpdate

logger = logging.getLogger(__name__)

VIDEO_SUBMITTED_PROGRESS = 20
VIDEO_POLL_CEILING = 90
VIDEO_POLL_WEIGHT = 0.7


class JobReporter(Protocol):
    """Progress channel from a handler back to the queue."""

    async def progress(self, percent: int | float) -> None: ...

    async def record_handle(self, handle: str) -> None: ...

    async def is_cancelled(self) -> bool: ...


def parse_payload(model: type[BaseModel], data: dict) -> BaseModel:
    """Validate a stored payload, raising the domain ValidationError."""
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise ValidationError(f"Invalid job payload: {e.error_count()} errors", field="payload") from e


def video_job_progress(provider_progress: int) -> int:
    """Map provider progress (0-100) onto the 20-90 band of a video job."""
    scaled = VIDEO_SUBMITTED_PROGRESS + VIDEO_POLL_WEIGHT * provider_progress
    return int(min(VIDEO_POLL_CEILING, scaled))


class JobHandler(ABC):
    """Executes jobs of one type."""

    job_type: JobType

    @abstractmethod
    async def handle(self, job: QueuedJob, reporter: JobReporter) -> dict:
        """
        Run a claimed job to completion.

        Args:
            job: Claimed job snapshot
            reporter: Progress channel

        Returns:
            dict: Job output

        Raises:
            ValidationError: Payload cannot be processed; not retried
            Exception: Any other failure; subject to the retry policy
        """

    async def on_completed(self, job: QueuedJob, output: dict, session: AsyncSession) -> None:
        """
        Hook run inside the transaction that marks the job completed.

        Only called when the completion applies, so a job cancelled or
        reclaimed meanwhile never reaches it. Writes made through
        `session` commit together with the completion.
        """

    async def on_permanent_failure(self, job: QueuedJob, error: str) -> None:
        """Hook run once a job has failed for good."""


class VideoGenerationHandler(JobHandler):
    """
    Submit a text-to-video generation and poll it to completion.

    Progress: 10 on start, 20 once submitted, then 20 + 0.7 * provider
    progress capped at 90 while polling; the queue sets 100 on completion.
    """

    job_type = JobType.VIDEO_GENERATE

    def __init__(self, gateway: VideoGatewayClient, poll_loop: PollLoop) -> None:
        self._gateway = gateway
        self._poll_loop = poll_loop

    async def handle(self, job: QueuedJob, reporter: JobReporter) -> dict:
        request = validate_video_input(
            parse_payload(VideoGenerationRequest, job.payload),
            self._gateway.capabilities,
        )
        await reporter.progress(10)

        handle = await self._gateway.submit(request)
        logger.info(f"{__name__}:handle - Job {job.id} submitted as {handle}")

        async def on_update(update: VideoStatusUpdate) -> None:
            await reporter.progress(video_job_progress(update.progress))

        try:
            await reporter.record_handle(handle)
            await reporter.progress(VIDEO_SUBMITTED_PROGRESS)
            final = await self._poll_loop.run(
                lambda: self._gateway.poll_status(handle),
                on_update=on_update,
                is_cancelled=reporter.is_cancelled,
                job_id=job.id,
                handle=handle,
            )
        finally:
            await self._gateway.release(handle)

        result = final.result
        if result is None or not result.video_url:
            raise ProviderJobFailedError("Provider completed without a video URL")
        return {
            "video_url": result.video_url,
            "duration": result.duration,
            "resolution": result.resolution,
            "thumbnail_url": result.thumbnail_url,
            "file_size": result.file_size,
            "external_handle": handle,
        }


class _ScriptHandler(JobHandler):
    """
    Shared persistence for script jobs.

    The script is written to the project in the transaction that completes
    the job, so a job cancelled while the provider was writing leaves the
    project untouched.
    """

    def __init__(self, gateway: ScriptGatewayClient, session_factory: async_sessionmaker) -> None:
        self._gateway = gateway
        self._session_factory = session_factory

    async def _set_status(self, project_id: UUID | None, status: ScriptStatus, job_id: UUID) -> None:
        if project_id is None:
            return
        async with transaction(self._session_factory, "update_script_status") as session:
            await project_crud.update_script_status(session, project_id, status, script_job_id=job_id)

    async def _mark_processing(self, job: QueuedJob) -> None:
        if job.project_id is None:
            return
        async with transaction(self._session_factory, "update_script_status") as session:
            if await job_crud.is_cancel_requested(session, job.id):
                raise JobCancelledError(job.id)
            await project_crud.update_script_status(
                session, job.project_id, ScriptStatus.PROCESSING, script_job_id=job.id
            )

    async def handle(self, job: QueuedJob, reporter: JobReporter) -> dict:
        await self._mark_processing(job)
        await reporter.progress(10)

        await reporter.progress(30)
        script = await self._produce(job)
        await reporter.progress(80)

        logger.info(f"{__name__}:handle - Script job {job.id} produced '{script.title}'")
        return {"script": script.model_dump(mode="json", by_alias=True)}

    async def on_completed(self, job: QueuedJob, output: dict, session: AsyncSession) -> None:
        if job.project_id is not None:
            await project_crud.save_script(session, job.project_id, output["script"], job.id)

    async def on_permanent_failure(self, job: QueuedJob, error: str) -> None:
        await self._set_status(job.project_id, ScriptStatus.FAILED, job.id)

    @abstractmethod
    async def _produce(self, job: QueuedJob) -> GeneratedScript:
        """Call the script provider for this job."""


class ScriptGenerationHandler(_ScriptHandler):
    """Write a new script for a project."""

    job_type = JobType.SCRIPT_GENERATE

    async def _produce(self, job: QueuedJob) -> GeneratedScript:
        script_input = parse_payload(ScriptGenerationInput, job.payload.get("input", {}))
        return await self._gateway.generate(script_input)


class ScriptRefinementHandler(_ScriptHandler):
    """Rewrite a project's script from user feedback."""

    job_type = JobType.SCRIPT_REFINE

    async def _produce(self, job: QueuedJob) -> GeneratedScript:
        if "script" not in job.payload or not job.payload.get("feedback"):
            raise ValidationError("Refinement needs a script and feedback", field="payload")
        script = parse_payload(GeneratedScript, job.payload["script"])
        return await self._gateway.refine(script, job.payload["feedback"])
