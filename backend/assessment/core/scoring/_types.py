"""
Result types for the scoring pipeline.

CompetencyScore and IndicatorScore are mutable on purpose: strategies fill
in their goal-specific fields and the post-scoring enrichment steps
(proficiency labels, confidence intervals) annotate them in place before
the ScoringResult is handed to the caller.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from libs.domain_types import AssessmentGoal, BigFiveTrait, ScoringStatus


class CompetencyBand(str, Enum):
    """Overview profile band. Every competency lands in exactly one."""

    SIGNATURE_STRENGTH = "SIGNATURE_STRENGTH"
    STRENGTH = "STRENGTH"
    AVERAGE = "AVERAGE"
    DEVELOPING = "DEVELOPING"
    CRITICAL_GAP = "CRITICAL_GAP"


class ConfidenceLevel(str, Enum):
    """JobFit decision confidence band."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class TeamContribution(str, Enum):
    """How a candidate's competency relates to the existing team."""

    SATURATION = "SATURATION"
    DIVERSITY = "DIVERSITY"
    GAP = "GAP"


@dataclass
class IndicatorScore:
    indicator_id: uuid.UUID
    indicator_title: str
    weight: float
    score: float
    max_score: float
    percentage: float
    questions_answered: int


@dataclass
class CompetencyScore:
    """Per-competency breakdown with nested indicator drill-down."""

    competency_id: uuid.UUID
    competency_name: str
    score: float
    max_score: float
    percentage: float
    questions_answered: int
    indicator_scores: List[IndicatorScore] = field(default_factory=list)
    onet_code: Optional[str] = None
    esco_uri: Optional[str] = None
    big_five_category: Optional[BigFiveTrait] = None

    # Evidence sufficiency
    insufficient_evidence: bool = False
    evidence_note: Optional[str] = None

    # Goal-specific annotations
    band: Optional[CompetencyBand] = None
    benchmark_score: Optional[float] = None
    meets_benchmark: Optional[bool] = None
    benchmark_gap: Optional[float] = None
    team_contribution: Optional[TeamContribution] = None
    weight_applied: Optional[float] = None

    # Post-scoring enrichment
    proficiency_level: Optional[str] = None
    proficiency_label: Optional[str] = None
    sem: Optional[float] = None
    ci_lower: Optional[float] = None
    ci_upper: Optional[float] = None
    cronbach_alpha: Optional[float] = None


@dataclass
class TeamFitMetrics:
    diversity_ratio: float
    saturation_ratio: float
    team_fit_multiplier: float
    diversity_count: int
    saturation_count: int
    gap_count: int
    personality_compatibility: Optional[float]
    adjusted_pass_threshold: float
    team_size: Optional[int]
    team_data_available: bool


@dataclass
class ScoringResult:
    """Final scoring output for one completed session."""

    session_id: uuid.UUID
    goal: AssessmentGoal
    overall_score: float
    overall_percentage: float
    competency_scores: List[CompetencyScore]
    passed: Optional[bool]
    status: ScoringStatus = ScoringStatus.COMPLETED
    extended_metrics: Dict[str, Any] = field(default_factory=dict)

    # JobFit
    decision_confidence: Optional[float] = None
    confidence_level: Optional[ConfidenceLevel] = None
    confidence_message: Optional[str] = None

    # TeamFit
    team_fit_metrics: Optional[TeamFitMetrics] = None
    big_five_profile: Optional[Dict[BigFiveTrait, float]] = None

    @classmethod
    def pending(
        cls, session_id: uuid.UUID, goal: AssessmentGoal, reason: str
    ) -> "ScoringResult":
        """Placeholder stored when scoring failed and must be retried."""
        return cls(
            session_id=session_id,
            goal=goal,
            overall_score=0.0,
            overall_percentage=0.0,
            competency_scores=[],
            passed=None,
            status=ScoringStatus.PENDING,
            extended_metrics={"pending_reason": reason},
        )
