"""Shared domain types for the competency assessment engine.

This package is the single source of truth for domain enums used across
the scoring pipeline, the question selection engine, the ORM layer and
(indirectly via OpenAPI) API clients.

Usage:
    from libs.domain_types import QuestionType, DifficultyLevel
"""

import enum


class QuestionType(str, enum.Enum):
    """Types of assessment questions.

    Several members are historical aliases that share a normalization rule
    (e.g. LIKERT and LIKERT_SCALE).
    """

    LIKERT = "likert"
    LIKERT_SCALE = "likert_scale"
    FREQUENCY_SCALE = "frequency_scale"
    SJT = "sjt"
    SITUATIONAL_JUDGMENT = "situational_judgment"
    MCQ = "mcq"
    MULTIPLE_CHOICE = "multiple_choice"
    CAPABILITY_ASSESSMENT = "capability_assessment"
    PEER_FEEDBACK = "peer_feedback"
    BEHAVIORAL_EXAMPLE = "behavioral_example"
    OPEN_TEXT = "open_text"
    SELF_REFLECTION = "self_reflection"


class DifficultyLevel(str, enum.Enum):
    """Difficulty levels for questions, ordered from easiest to hardest."""

    FOUNDATIONAL = "foundational"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def ordinal(self) -> int:
        """Position of this level in the difficulty ordering (0-based)."""
        return _DIFFICULTY_ORDER.index(self)

    def distance(self, other: "DifficultyLevel") -> int:
        """Ordinal distance between two difficulty levels."""
        return abs(self.ordinal - other.ordinal)


_DIFFICULTY_ORDER = (
    DifficultyLevel.FOUNDATIONAL,
    DifficultyLevel.INTERMEDIATE,
    DifficultyLevel.ADVANCED,
)


class ItemValidityStatus(str, enum.Enum):
    """Psychometric validity status of a question."""

    ACTIVE = "active"
    PROBATION = "probation"
    FLAGGED_FOR_REVIEW = "flagged_for_review"
    RETIRED = "retired"


class AssessmentGoal(str, enum.Enum):
    """Goal a test blueprint is assembled and scored for."""

    OVERVIEW = "overview"
    JOB_FIT = "job_fit"
    TEAM_FIT = "team_fit"


class DistributionStrategy(str, enum.Enum):
    """How a question budget is spread across behavioral indicators."""

    WATERFALL = "waterfall"
    WEIGHTED = "weighted"
    PRIORITY_FIRST = "priority_first"


class BigFiveTrait(str, enum.Enum):
    """Big Five personality dimensions a competency may map onto."""

    OPENNESS = "openness"
    CONSCIENTIOUSNESS = "conscientiousness"
    EXTRAVERSION = "extraversion"
    AGREEABLENESS = "agreeableness"
    EMOTIONAL_STABILITY = "emotional_stability"


class ScoringStatus(str, enum.Enum):
    """Lifecycle status of a scoring result."""

    PENDING = "pending"
    COMPLETED = "completed"


__all__ = [
    "QuestionType",
    "DifficultyLevel",
    "ItemValidityStatus",
    "AssessmentGoal",
    "DistributionStrategy",
    "BigFiveTrait",
    "ScoringStatus",
]
