"""
Plain domain records consumed by the scoring and selection engines.

These are the shapes the provider boundary hands to the engine. The ORM
classes in ``models.py`` convert to them with ``to_domain()`` so core code
never touches a SQLAlchemy session.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from libs.domain_types import (
    BigFiveTrait,
    DifficultyLevel,
    ItemValidityStatus,
    QuestionType,
)


@dataclass(frozen=True)
class Answer:
    """A recorded response to one question. Immutable once recorded."""

    question_id: uuid.UUID
    likert_value: Optional[int] = None
    score: Optional[float] = None
    skipped: bool = False
    answered: bool = True
    time_spent_seconds: Optional[int] = None

    @property
    def is_scorable(self) -> bool:
        """Skipped and unanswered items never reach the normalizer."""
        return self.answered and not self.skipped


@dataclass(frozen=True)
class Competency:
    id: uuid.UUID
    name: str
    category: Optional[str] = None
    onet_code: Optional[str] = None
    esco_uri: Optional[str] = None
    big_five_category: Optional[BigFiveTrait] = None
    is_active: bool = True


@dataclass(frozen=True)
class Indicator:
    id: uuid.UUID
    competency_id: uuid.UUID
    title: str
    weight: float = 1.0
    is_active: bool = True


@dataclass(frozen=True)
class Question:
    id: uuid.UUID
    indicator_id: uuid.UUID
    question_type: QuestionType
    difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    is_active: bool = True
    exposure_count: int = 0
    context_neutral: bool = False


@dataclass(frozen=True)
class ItemStatistics:
    """Psychometric statistics for one question."""

    question_id: uuid.UUID
    validity_status: ItemValidityStatus = ItemValidityStatus.PROBATION
    discrimination_index: Optional[float] = None


@dataclass(frozen=True)
class BenchmarkProfile:
    """Occupation benchmark: competency name -> required level on a 1-5 scale."""

    occupation_code: str
    title: str
    benchmarks: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TeamProfile:
    """Aggregated profile of an existing team.

    ``competency_saturation`` maps competency id to the fraction (0-1) of the
    team already strong in it. ``personality_profile`` maps Big Five trait to
    the team average on a 0-100 scale.
    """

    team_id: uuid.UUID
    member_count: int
    competency_saturation: Dict[uuid.UUID, float] = field(default_factory=dict)
    personality_profile: Dict[BigFiveTrait, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CompetencyReliability:
    """Reliability data used to put confidence intervals around a score."""

    competency_id: uuid.UUID
    cronbach_alpha: Optional[float]
    sample_size: int = 0
    score_sd: Optional[float] = None


@dataclass(frozen=True)
class HistoricalResponse:
    """One respondent's normalized score on one item, for offline analysis."""

    session_id: uuid.UUID
    question_id: uuid.UUID
    normalized_score: float
