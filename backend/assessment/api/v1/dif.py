"""
Differential item functioning (DIF) analysis endpoint.
"""
import logging

from fastapi import APIRouter, Depends

from assessment.api.deps import get_dif_engine
from assessment.core.dif import DifAnalysisEngine
from assessment.schemas.dif import DifAnalysisRequest, DifAnalysisResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/analyze",
    response_model=DifAnalysisResponse,
    responses={400: {"description": "Invalid groups or insufficient data"}},
)
def analyze_dif(
    request: DifAnalysisRequest,
    engine: DifAnalysisEngine = Depends(get_dif_engine),
):
    r"""
    Run Mantel-Haenszel DIF analysis for a focal and a reference group.

    Items come from ``competency_id`` when given, otherwise from
    ``question_ids``. Groups must be non-empty and disjoint, and each needs
    enough respondents with stored answers.

    **ETS categories** (on the absolute MH D-DIF):
    - A: negligible, |D| < 1.0
    - B: moderate, 1.0 <= |D| < 1.5
    - C: large, |D| >= 1.5

    A negative D-DIF means the item favors the focal group.
    """
    if request.competency_id is not None:
        result = engine.analyze_competency(
            request.competency_id,
            request.focal_session_ids,
            request.reference_session_ids,
            focal_label=request.focal_label,
            reference_label=request.reference_label,
        )
    else:
        result = engine.analyze_items(
            request.question_ids,
            request.focal_session_ids,
            request.reference_session_ids,
            focal_label=request.focal_label,
            reference_label=request.reference_label,
        )

    logger.info(
        f"DIF analysis complete: {result.total_items} items, "
        f"{result.items_with_moderate_dif} moderate, {result.items_with_large_dif} large"
    )
    return DifAnalysisResponse.model_validate(result)
