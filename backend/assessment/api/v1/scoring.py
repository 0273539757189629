"""
Session scoring and scoring configuration endpoints.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from assessment.api.deps import get_catalog, get_scoring_service
from assessment.core.config import ScoringConfiguration, scoring_config_store
from assessment.core.scoring import ScoringService
from assessment.providers import SqlCatalog
from assessment.schemas.scoring import ScoreRequest, ScoringResultResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sessions/{session_id}",
    response_model=ScoringResultResponse,
    responses={404: {"description": "No answers recorded for this session"}},
)
def score_session(
    session_id: uuid.UUID,
    request: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
    catalog: SqlCatalog = Depends(get_catalog),
):
    """
    Score a completed session against its blueprint.

    Answers in the request body take precedence; without them the session's
    stored answers are scored. A strategy failure does not produce an error
    response: the result comes back with status ``pending`` and the reason in
    ``extended_metrics.pending_reason`` so the caller can retry later.
    """
    if request.answers is not None:
        answers = [a.to_answer() for a in request.answers]
    else:
        answers = catalog.get_session_answers([session_id]).get(session_id, [])
        if not answers:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No answers recorded for session {session_id}",
            )

    result = service.score(session_id, answers, request.blueprint.to_blueprint())
    logger.info(
        f"Scored session {session_id} ({result.goal.value}): "
        f"status={result.status.value}, overall={result.overall_percentage}%"
    )
    return ScoringResultResponse.model_validate(result)


@router.get("/config", response_model=ScoringConfiguration)
def get_scoring_configuration():
    """Return the weights and thresholds currently used by the strategies."""
    return scoring_config_store.get()


@router.put("/config", response_model=ScoringConfiguration)
def update_scoring_configuration(config: ScoringConfiguration):
    """
    Replace the live scoring configuration.

    The whole configuration is validated before the swap (band ordering,
    penalty below bonus, clamp bounds); a rejected payload leaves the current
    configuration untouched. Scoring runs already in flight finish with the
    configuration they started with.
    """
    scoring_config_store.update(config)
    logger.info("Scoring configuration updated")
    return scoring_config_store.get()
