"""
Blueprint validation endpoint.
"""
import logging

from fastapi import APIRouter, Depends

from assessment.api.deps import get_blueprint_validator
from assessment.core.blueprint import BlueprintValidator
from assessment.schemas.blueprint import (
    BlueprintValidationRequest,
    BlueprintValidationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/validate", response_model=BlueprintValidationResponse)
def validate_blueprint(
    request: BlueprintValidationRequest,
    validator: BlueprintValidator = Depends(get_blueprint_validator),
):
    """
    Validate a blueprint's fields and question inventory.

    Always returns 200: an invalid blueprint is reported through ``errors``
    with the offending field or competency attached to each issue.
    ``can_simulate`` and ``can_publish`` tell the caller what the blueprint
    is ready for.
    """
    blueprint = request.blueprint.to_blueprint()
    result = validator.validate(blueprint, for_publishing=request.for_publishing)
    logger.info(
        f"Validated {request.blueprint.goal} blueprint: "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return BlueprintValidationResponse.from_result(result)
