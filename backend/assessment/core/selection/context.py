"""
Per-request selection state: the seeded random source and collected warnings.

A ``SelectionContext`` is created once per assembly and passed explicitly to
every engine call. Nothing about it is global or thread-local, so concurrent
assemblies never share a random stream or leak warnings into each other.
"""

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class WarningLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class WarningCode(str, Enum):
    """Machine-readable codes for selection warnings."""

    NO_ACTIVE_QUESTIONS_INDICATOR = "NO_ACTIVE_QUESTIONS_INDICATOR"
    INDICATOR_EXHAUSTED_BORROWING = "INDICATOR_EXHAUSTED_BORROWING"
    NO_ACTIVE_INDICATORS_COMPETENCIES = "NO_ACTIVE_INDICATORS_COMPETENCIES"
    NO_INDICATORS_PROVIDED = "NO_INDICATORS_PROVIDED"
    EMPTY_WEIGHTS = "EMPTY_WEIGHTS"
    NON_POSITIVE_TOTAL_WEIGHT = "NON_POSITIVE_TOTAL_WEIGHT"
    BENCHMARK_NOT_FOUND = "BENCHMARK_NOT_FOUND"
    BENCHMARK_COMPETENCY_UNMATCHED = "BENCHMARK_COMPETENCY_UNMATCHED"
    TEAM_PROFILE_NOT_FOUND = "TEAM_PROFILE_NOT_FOUND"


@dataclass(frozen=True)
class SelectionWarning:
    level: WarningLevel
    code: WarningCode
    message: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "code": self.code.value,
            "message": self.message,
            "params": {k: str(v) for k, v in self.params.items()},
        }


def seed_from_session(session_id: uuid.UUID) -> int:
    """The session UUID's most-significant 64 bits."""
    return session_id.int >> 64


@dataclass
class SelectionContext:
    """
    Random source and warning sink for one selection run.

    Two contexts built from the same seed produce the same shuffle sequence,
    so the same session id over the same inventory yields the same question
    ids in the same order.
    """

    rng: random.Random
    seed: Optional[int] = None
    warnings: List[SelectionWarning] = field(default_factory=list)

    @classmethod
    def for_session(cls, session_id: uuid.UUID) -> "SelectionContext":
        seed = seed_from_session(session_id)
        return cls(rng=random.Random(seed), seed=seed)

    @classmethod
    def seeded(cls, seed: int) -> "SelectionContext":
        return cls(rng=random.Random(seed), seed=seed)

    @classmethod
    def unseeded(cls) -> "SelectionContext":
        """Context for simulations and validation where order does not matter."""
        return cls(rng=random.Random())

    def warn(
        self,
        code: WarningCode,
        message: str,
        level: WarningLevel = WarningLevel.WARNING,
        **params: Any,
    ) -> SelectionWarning:
        warning = SelectionWarning(level=level, code=code, message=message, params=params)
        self.warnings.append(warning)
        return warning

    def has_warning(self, code: WarningCode) -> bool:
        return any(w.code == code for w in self.warnings)
