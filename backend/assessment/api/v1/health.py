"""
Liveness endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from assessment.core import settings
from libs.domain_types import AssessmentGoal

router = APIRouter()


@router.get("/health")
async def health_check():
    """Report service identity and which engine features are switched on."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENV,
        "goals": [goal.value for goal in AssessmentGoal],
        "psychometrics_enabled": settings.PSYCHOMETRICS_ENABLED,
    }


@router.get("/ping")
async def ping():
    return {"message": "pong"}
