"""Test assembly per assessment goal, with progress tracking."""

from .progress import (
    AssemblyPhase,
    AssemblyProgress,
    AssemblyProgressEvent,
    AssemblyProgressTracker,
)
from .service import (
    AssemblyResult,
    TestAssemblyService,
    difficulty_for_strictness,
    questions_for_saturation,
)

__all__ = [
    "AssemblyPhase",
    "AssemblyProgress",
    "AssemblyProgressEvent",
    "AssemblyProgressTracker",
    "AssemblyResult",
    "TestAssemblyService",
    "difficulty_for_strictness",
    "questions_for_saturation",
]
