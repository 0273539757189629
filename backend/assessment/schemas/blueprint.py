"""
Schemas for blueprint payloads and validation results.

Blueprints arrive as a discriminated union on ``goal``. Field ranges are
not enforced here: ``BlueprintValidator`` owns those rules and
reports them as field-attributed issues.
"""
import uuid
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from libs.domain_types import DistributionStrategy

from assessment.core.blueprint import (
    DEFAULT_QUESTIONS_PER_INDICATOR,
    DEFAULT_SATURATION_THRESHOLD,
    BlueprintValidationResult,
    JobFitBlueprint,
    OverviewBlueprint,
    TeamFitBlueprint,
    ValidationIssue,
)


class OverviewBlueprintSchema(BaseModel):
    """Universal baseline across an explicit competency list."""

    goal: Literal["overview"] = "overview"
    competency_ids: List[uuid.UUID] = Field(default_factory=list)
    questions_per_indicator: int = Field(
        DEFAULT_QUESTIONS_PER_INDICATOR, description="Questions per active indicator (1-10)"
    )
    context_neutral_only: bool = Field(
        True, description="Restrict selection to context-neutral questions"
    )
    distribution: DistributionStrategy = DistributionStrategy.WATERFALL
    shuffle: bool = True

    def to_blueprint(self) -> OverviewBlueprint:
        return OverviewBlueprint(
            competency_ids=tuple(self.competency_ids),
            questions_per_indicator=self.questions_per_indicator,
            context_neutral_only=self.context_neutral_only,
            distribution=self.distribution,
            shuffle=self.shuffle,
        )


class JobFitBlueprintSchema(BaseModel):
    """Benchmark comparison against an occupation profile."""

    goal: Literal["job_fit"] = "job_fit"
    onet_soc_code: Optional[str] = Field(
        None, description="Occupation code in NN-NNNN.NN format", examples=["15-1252.00"]
    )
    strictness_level: int = Field(50, description="0 (lenient) to 100 (strict)")
    competency_ids: List[uuid.UUID] = Field(default_factory=list)
    questions_per_indicator: int = 2
    distribution: DistributionStrategy = DistributionStrategy.WATERFALL
    shuffle: bool = True

    def to_blueprint(self) -> JobFitBlueprint:
        return JobFitBlueprint(
            onet_soc_code=self.onet_soc_code,
            strictness_level=self.strictness_level,
            competency_ids=tuple(self.competency_ids),
            questions_per_indicator=self.questions_per_indicator,
            distribution=self.distribution,
            shuffle=self.shuffle,
        )


class TeamFitBlueprintSchema(BaseModel):
    """Gap analysis against an existing team's profile."""

    goal: Literal["team_fit"] = "team_fit"
    team_id: Optional[uuid.UUID] = None
    saturation_threshold: float = Field(
        DEFAULT_SATURATION_THRESHOLD, description="Saturation override in (0, 1]"
    )
    target_role: Optional[str] = None
    role_competency_weights: Dict[uuid.UUID, float] = Field(default_factory=dict)
    competency_ids: List[uuid.UUID] = Field(default_factory=list)
    distribution: DistributionStrategy = DistributionStrategy.WEIGHTED
    shuffle: bool = True

    def to_blueprint(self) -> TeamFitBlueprint:
        return TeamFitBlueprint(
            team_id=self.team_id,
            saturation_threshold=self.saturation_threshold,
            target_role=self.target_role,
            role_competency_weights=dict(self.role_competency_weights),
            competency_ids=tuple(self.competency_ids),
            distribution=self.distribution,
            shuffle=self.shuffle,
        )


BlueprintSchema = Annotated[
    Union[OverviewBlueprintSchema, JobFitBlueprintSchema, TeamFitBlueprintSchema],
    Field(discriminator="goal"),
]


class ValidationIssueSchema(BaseModel):
    id: str
    severity: str
    message: str
    field: Optional[str] = None
    competency_id: Optional[uuid.UUID] = None

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> "ValidationIssueSchema":
        return cls(
            id=issue.id,
            severity=issue.severity.value,
            message=issue.message,
            field=issue.field,
            competency_id=issue.competency_id,
        )


class BlueprintValidationRequest(BaseModel):
    blueprint: BlueprintSchema
    for_publishing: bool = True


class BlueprintValidationResponse(BaseModel):
    valid: bool
    errors: List[ValidationIssueSchema]
    warnings: List[ValidationIssueSchema]
    can_simulate: bool
    can_publish: bool

    @classmethod
    def from_result(cls, result: BlueprintValidationResult) -> "BlueprintValidationResponse":
        return cls(
            valid=result.valid,
            errors=[ValidationIssueSchema.from_issue(i) for i in result.errors],
            warnings=[ValidationIssueSchema.from_issue(i) for i in result.warnings],
            can_simulate=result.can_simulate,
            can_publish=result.can_publish,
        )
