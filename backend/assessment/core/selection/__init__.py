"""Question selection: eligibility, distributions and exposure tracking."""

from .context import (
    SelectionContext,
    SelectionWarning,
    WarningCode,
    WarningLevel,
    seed_from_session,
)
from .engine import (
    GRADUATED_DIFFICULTY_BANDS,
    QuestionSelectionEngine,
    allocate_weighted,
)
from .exposure import ExposureTracker

__all__ = [
    "SelectionContext",
    "SelectionWarning",
    "WarningCode",
    "WarningLevel",
    "seed_from_session",
    "GRADUATED_DIFFICULTY_BANDS",
    "QuestionSelectionEngine",
    "allocate_weighted",
    "ExposureTracker",
]
