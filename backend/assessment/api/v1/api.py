"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter

from assessment.api.v1 import assembly, blueprints, dif, health, scoring

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(blueprints.router, prefix="/blueprints", tags=["blueprints"])
api_router.include_router(assembly.router, prefix="/assembly", tags=["assembly"])
api_router.include_router(scoring.router, prefix="/scoring", tags=["scoring"])
api_router.include_router(dif.router, prefix="/dif", tags=["dif"])
