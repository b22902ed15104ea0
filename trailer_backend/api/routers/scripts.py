"""
Script generation API endpoints.

Routes: POST /scripts, POST /scripts/refine

Dependencies: trailer_backend.application.services, trailer_backend.models
System role: Script submission HTTP API
"""

from fastapi import APIRouter, Depends, status

from trailer_backend.api.deps import get_generation_service, get_user_id
from trailer_backend.api.routers.error_handling import handle_domain_errors
from trailer_backend.application.services import GenerationService
from trailer_backend.models.job import SubmitJobResponse
from trailer_backend.models.script import (
    RefineScriptRequest,
    ScriptGenerationInput,
    ScriptGenerationRequest,
)

router = APIRouter(prefix="/scripts", tags=["scripts"])


@router.post("", response_model=SubmitJobResponse, status_code=status.HTTP_202_ACCEPTED)
@handle_domain_errors
async def generate_script(
    request: ScriptGenerationRequest,
    user_id: str | None = Depends(get_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> SubmitJobResponse:
    """Queue script generation for a project."""
    script_input = ScriptGenerationInput.model_validate(request.model_dump(exclude={"project_id"}))
    job_id = await service.submit_script_generation(request.project_id, user_id, script_input)
    return SubmitJobResponse(job_id=job_id)


@router.post("/refine", response_model=SubmitJobResponse, status_code=status.HTTP_202_ACCEPTED)
@handle_domain_errors
async def refine_script(
    request: RefineScriptRequest,
    user_id: str | None = Depends(get_user_id),
    service: GenerationService = Depends(get_generation_service),
) -> SubmitJobResponse:
    """
    Queue refinement of a project's script.

    The stored project script is refined unless one is given in the body.
    """
    job_id = await service.submit_script_refinement(
        request.project_id,
        user_id,
        request.feedback,
        script=request.script,
    )
    return SubmitJobResponse(job_id=job_id)
