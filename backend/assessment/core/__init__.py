"""
Core module for configuration, shared utilities and the engine packages.

Import engine components from their subpackages directly:
from assessment.core.scoring import ScoringService, from
assessment.core.selection import QuestionSelectionEngine.
"""
from .config import settings

__all__ = ["settings"]
