"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assessment.api.deps import shutdown_progress_tracker
from assessment.api.v1.api import api_router
from assessment.core.config import settings
from assessment.core.error_tracking import capture_error, flush, init_sentry
from assessment.core.exceptions import (
    BlueprintValidationError,
    DifAnalysisError,
    InsufficientGroupSizeError,
    InsufficientInventoryError,
)
from assessment.core.logging_config import setup_logging
from assessment.middleware import RequestLoggingMiddleware
from assessment.schemas.blueprint import ValidationIssueSchema

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    - On startup: initializes Sentry when a DSN is configured
    - On shutdown: drains the assembly progress notifier pool and flushes
      pending Sentry events
    """
    init_sentry()
    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} starting "
        f"(env={settings.ENV}, psychometrics={'on' if settings.PSYCHOMETRICS_ENABLED else 'off'})"
    )

    yield

    shutdown_progress_tracker()
    flush()
    logger.info("Application shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "blueprints",
        "description": "Blueprint field and question-inventory validation",
    },
    {
        "name": "assembly",
        "description": "Seeded question-set assembly per assessment goal, with progress polling",
    },
    {
        "name": "scoring",
        "description": "Session scoring (Overview, JobFit, TeamFit) and runtime scoring configuration",
    },
    {
        "name": "dif",
        "description": "Mantel-Haenszel differential item functioning analysis",
    },
]


def _error_body(exc: Exception, **extra) -> dict:
    body = {"detail": getattr(exc, "message", str(exc))}
    context = getattr(exc, "context", None)
    if context:
        body["context"] = context
    body.update(extra)
    return body


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "Scoring, question-assembly and item-fairness engine for competency "
            "assessments.\n\n"
            "This API provides:\n"
            "* Blueprint validation against the live question inventory\n"
            "* Seeded, reproducible question assembly for Overview, JobFit and TeamFit goals\n"
            "* Session scoring with per-competency and per-indicator breakdowns\n"
            "* Mantel-Haenszel DIF analysis over answer history"
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Request logging is added last so it wraps everything else
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(BlueprintValidationError)
    async def blueprint_validation_handler(
        request: Request, exc: BlueprintValidationError
    ):
        """Report field-attributed blueprint issues."""
        logger.warning(f"Blueprint rejected on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                exc,
                issues=[
                    ValidationIssueSchema.from_issue(i).model_dump(mode="json")
                    for i in exc.issues
                ],
            ),
        )

    @app.exception_handler(InsufficientInventoryError)
    async def insufficient_inventory_handler(
        request: Request, exc: InsufficientInventoryError
    ):
        logger.warning(f"Assembly produced no questions on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content=_error_body(exc)
        )

    @app.exception_handler(DifAnalysisError)
    async def dif_analysis_handler(request: Request, exc: DifAnalysisError):
        logger.warning(f"DIF analysis rejected on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(
                exc,
                insufficient_data=isinstance(exc, InsufficientGroupSizeError),
            ),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id for each exception so a report from a
        caller can be traced to the logged stack trace.
        """
        error_id = str(uuid.uuid4())
        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )
        capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "error_id": error_id},
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
