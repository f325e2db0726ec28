"""Staged draft workflow endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.dependencies import CurrentUser, DbSession
from app.schemas.workflow import (
    ContentPhaseRequest,
    EnhancementPhaseRequest,
    ImagesPhaseRequest,
    PhaseResponse,
    WorkflowPhaseResponse,
)
from app.services.workflow_phases import (
    QUEUE_ITEM_NOT_FOUND,
    PhaseResult,
    complete_content_phase,
    complete_enhancement_phase,
    complete_images_phase,
    get_workflow_phase,
)

router = APIRouter()


def _phase_response(result: PhaseResult) -> PhaseResponse | JSONResponse:
    if result.success:
        return PhaseResponse(**result.to_dict())
    status_code = (
        status.HTTP_404_NOT_FOUND
        if result.error == QUEUE_ITEM_NOT_FOUND
        else status.HTTP_400_BAD_REQUEST
    )
    return JSONResponse(status_code=status_code, content=result.to_dict())


@router.post("/{queue_id}/phases/1", response_model=None)
async def run_content_phase(
    queue_id: str,
    request: ContentPhaseRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> PhaseResponse | JSONResponse:
    """Write generated content into the queue item's draft."""
    result = await complete_content_phase(
        session,
        current_user.org_id,
        queue_id,
        title=request.title,
        content=request.content,
        excerpt=request.excerpt,
        word_count=request.word_count,
        metadata=request.metadata,
    )
    return _phase_response(result)


@router.post("/{queue_id}/phases/2", response_model=None)
async def run_images_phase(
    queue_id: str,
    request: ImagesPhaseRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> PhaseResponse | JSONResponse:
    result = await complete_images_phase(
        session,
        current_user.org_id,
        queue_id,
        featured_image=request.featured_image.model_dump() if request.featured_image else None,
        content_images=request.content_images,
    )
    return _phase_response(result)


@router.post("/{queue_id}/phases/3", response_model=None)
async def run_enhancement_phase(
    queue_id: str,
    request: EnhancementPhaseRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> PhaseResponse | JSONResponse:
    result = await complete_enhancement_phase(
        session,
        current_user.org_id,
        queue_id,
        **request.model_dump(),
    )
    return _phase_response(result)


@router.get("/{queue_id}/phase", response_model=WorkflowPhaseResponse)
async def read_workflow_phase(
    queue_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> WorkflowPhaseResponse:
    phase = await get_workflow_phase(session, current_user.org_id, queue_id)
    return WorkflowPhaseResponse(queue_id=queue_id, phase=phase)
