"""
Test assembly endpoints.

Assembly runs synchronously inside the request. While it runs, its progress
can be polled from another request; once it completes or fails the progress
entry is gone and the poll returns 404.
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from assessment.api.deps import get_assembly_service, get_progress_tracker
from assessment.core.assembly import AssemblyProgressTracker, TestAssemblyService
from assessment.schemas.assembly import (
    AssemblyProgressResponse,
    AssemblyRequest,
    AssemblyResponse,
)

router = APIRouter()


@router.post(
    "/{session_id}",
    response_model=AssemblyResponse,
    responses={
        409: {"description": "No eligible questions could be selected"},
        422: {"description": "Blueprint failed validation"},
    },
)
def assemble_test(
    session_id: uuid.UUID,
    request: AssemblyRequest,
    service: TestAssemblyService = Depends(get_assembly_service),
):
    """
    Assemble the question set for a session and commit question exposure.

    The selection is seeded from the session id: assembling the same session
    again over an unchanged inventory returns the same questions in the same
    order.
    """
    result = service.assemble(
        session_id, request.blueprint.to_blueprint(), template_id=request.template_id
    )
    return AssemblyResponse.from_result(session_id, result)


@router.get(
    "/{session_id}/progress",
    response_model=AssemblyProgressResponse,
    responses={404: {"description": "No assembly in progress for this session"}},
)
def get_assembly_progress(
    session_id: uuid.UUID,
    tracker: AssemblyProgressTracker = Depends(get_progress_tracker),
):
    progress = tracker.get_progress(session_id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No assembly in progress for session {session_id}",
        )
    return AssemblyProgressResponse.model_validate(progress)
