"""
Schemas for session scoring and the runtime scoring configuration.

Response models read the engine's result dataclasses directly
(``from_attributes``), so the JSON mirrors ``ScoringResult`` field for field.
"""
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from libs.domain_types import AssessmentGoal, BigFiveTrait, ScoringStatus

from assessment.core.scoring import (
    CompetencyBand,
    ConfidenceLevel,
    TeamContribution,
)
from assessment.models.domain import Answer

from .blueprint import BlueprintSchema


class AnswerSchema(BaseModel):
    """One recorded answer. Payload depends on the question type."""

    question_id: uuid.UUID
    likert_value: Optional[int] = Field(None, description="Ordinal 1-5 for Likert items")
    score: Optional[float] = Field(
        None, description="Pre-weighted scenario score or 0/1 correctness flag"
    )
    skipped: bool = False
    answered: bool = True
    time_spent_seconds: Optional[int] = Field(None, ge=0)

    def to_answer(self) -> Answer:
        return Answer(
            question_id=self.question_id,
            likert_value=self.likert_value,
            score=self.score,
            skipped=self.skipped,
            answered=self.answered,
            time_spent_seconds=self.time_spent_seconds,
        )


class ScoreRequest(BaseModel):
    blueprint: BlueprintSchema
    answers: Optional[List[AnswerSchema]] = Field(
        None,
        description="Answers to score. When omitted, the session's stored answers are used.",
    )


class IndicatorScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    indicator_id: uuid.UUID
    indicator_title: str
    weight: float
    score: float
    max_score: float
    percentage: float
    questions_answered: int


class CompetencyScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    competency_id: uuid.UUID
    competency_name: str
    score: float
    max_score: float
    percentage: float
    questions_answered: int
    indicator_scores: List[IndicatorScoreResponse]
    onet_code: Optional[str] = None
    esco_uri: Optional[str] = None
    big_five_category: Optional[BigFiveTrait] = None
    insufficient_evidence: bool = False
    evidence_note: Optional[str] = None
    band: Optional[CompetencyBand] = None
    benchmark_score: Optional[float] = None
    meets_benchmark: Optional[bool] = None
    benchmark_gap: Optional[float] = None
    team_contribution: Optional[TeamContribution] = None
    weight_applied: Optional[float] = None
    proficiency_level: Optional[str] = None
    proficiency_label: Optional[str] = None
    sem: Optional[float] = None
    ci_lower: Optional[float] = None
    ci_upper: Optional[float] = None
    cronbach_alpha: Optional[float] = None


class TeamFitMetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    diversity_ratio: float
    saturation_ratio: float
    team_fit_multiplier: float
    diversity_count: int
    saturation_count: int
    gap_count: int
    personality_compatibility: Optional[float] = None
    adjusted_pass_threshold: float
    team_size: Optional[int] = None
    team_data_available: bool


class ScoringResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: uuid.UUID
    goal: AssessmentGoal
    status: ScoringStatus
    overall_score: float
    overall_percentage: float
    passed: Optional[bool] = None
    competency_scores: List[CompetencyScoreResponse]
    extended_metrics: Dict[str, Any] = Field(default_factory=dict)
    decision_confidence: Optional[float] = None
    confidence_level: Optional[ConfidenceLevel] = None
    confidence_message: Optional[str] = None
    team_fit_metrics: Optional[TeamFitMetricsResponse] = None
    big_five_profile: Optional[Dict[BigFiveTrait, float]] = None
