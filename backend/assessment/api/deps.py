"""
FastAPI dependencies that wire providers into the engine services.

Every request gets a ``SqlCatalog`` over its own read session; exposure
writes go through ``SqlExposureStore``, which opens its own committed unit
of work. The assembly progress tracker is process-wide so a poll on one
request sees an assembly running on another.
"""
import threading
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from assessment.core.assembly import AssemblyProgressTracker, TestAssemblyService
from assessment.core.blueprint import BlueprintValidator
from assessment.core.config import scoring_config_store, settings
from assessment.core.dif import DifAnalysisEngine
from assessment.core.scoring import ScoringService
from assessment.core.selection import ExposureTracker, QuestionSelectionEngine
from assessment.models import SessionLocal, get_db
from assessment.providers import ExposureStore, SqlCatalog, SqlExposureStore

_tracker_lock = threading.Lock()
_progress_tracker: Optional[AssemblyProgressTracker] = None


def get_catalog(db: Session = Depends(get_db)) -> SqlCatalog:
    return SqlCatalog(db)


def get_exposure_store() -> ExposureStore:
    return SqlExposureStore(SessionLocal)


def get_progress_tracker() -> AssemblyProgressTracker:
    """Return the process-wide tracker, creating it on first use."""
    global _progress_tracker
    with _tracker_lock:
        if _progress_tracker is None:
            _progress_tracker = AssemblyProgressTracker()
        return _progress_tracker


def shutdown_progress_tracker() -> None:
    """Stop the notifier pool. Called from the application lifespan."""
    global _progress_tracker
    with _tracker_lock:
        tracker, _progress_tracker = _progress_tracker, None
    if tracker is not None:
        tracker.shutdown(wait=True)


def get_selection_engine(
    catalog: SqlCatalog = Depends(get_catalog),
) -> QuestionSelectionEngine:
    return QuestionSelectionEngine(
        catalog,
        catalog,
        catalog,
        catalog,
        use_discrimination=settings.PSYCHOMETRICS_ENABLED,
    )


def get_blueprint_validator(
    engine: QuestionSelectionEngine = Depends(get_selection_engine),
) -> BlueprintValidator:
    return BlueprintValidator(
        engine, min_questions_per_competency=settings.MIN_QUESTIONS_PER_COMPETENCY
    )


def get_assembly_service(
    catalog: SqlCatalog = Depends(get_catalog),
    engine: QuestionSelectionEngine = Depends(get_selection_engine),
    validator: BlueprintValidator = Depends(get_blueprint_validator),
    exposure_store: ExposureStore = Depends(get_exposure_store),
    progress: AssemblyProgressTracker = Depends(get_progress_tracker),
) -> TestAssemblyService:
    return TestAssemblyService(
        engine=engine,
        validator=validator,
        exposure=ExposureTracker(exposure_store),
        progress=progress,
        benchmarks=catalog,
        teams=catalog,
    )


def get_scoring_service(catalog: SqlCatalog = Depends(get_catalog)) -> ScoringService:
    return ScoringService(
        questions=catalog,
        indicators=catalog,
        competencies=catalog,
        benchmarks=catalog,
        teams=catalog,
        reliability=catalog,
        config_store=scoring_config_store,
    )


def get_dif_engine(catalog: SqlCatalog = Depends(get_catalog)) -> DifAnalysisEngine:
    return DifAnalysisEngine(
        history=catalog,
        questions=catalog,
        indicators=catalog,
        competencies=catalog,
    )
