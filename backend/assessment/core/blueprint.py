"""
Test blueprints and their validation.

A blueprint is a tagged union of three frozen dataclasses, one per
assessment goal. Assembly and scoring dispatch on the concrete type with
``match``. ``BlueprintValidator`` produces structured, field-attributed
issues; assembly refuses to run while any error is present.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Tuple, Union

from libs.domain_types import AssessmentGoal, DistributionStrategy

if TYPE_CHECKING:
    from assessment.core.selection.engine import QuestionSelectionEngine

logger = logging.getLogger(__name__)

ONET_SOC_CODE_PATTERN = re.compile(r"^\d{2}-\d{4}\.\d{2}$")

DEFAULT_QUESTIONS_PER_INDICATOR = 3
MAX_QUESTIONS_PER_INDICATOR = 10
DEFAULT_SATURATION_THRESHOLD = 0.75


@dataclass(frozen=True)
class OverviewBlueprint:
    """Universal baseline across an explicit competency list."""

    goal: ClassVar[AssessmentGoal] = AssessmentGoal.OVERVIEW

    competency_ids: Tuple[uuid.UUID, ...] = ()
    questions_per_indicator: int = DEFAULT_QUESTIONS_PER_INDICATOR
    context_neutral_only: bool = True
    distribution: DistributionStrategy = DistributionStrategy.WATERFALL
    shuffle: bool = True


@dataclass(frozen=True)
class JobFitBlueprint:
    """Benchmark comparison against an occupation profile."""

    goal: ClassVar[AssessmentGoal] = AssessmentGoal.JOB_FIT

    onet_soc_code: Optional[str] = None
    strictness_level: int = 50
    competency_ids: Tuple[uuid.UUID, ...] = ()
    questions_per_indicator: int = 2
    distribution: DistributionStrategy = DistributionStrategy.WATERFALL
    shuffle: bool = True


@dataclass(frozen=True)
class TeamFitBlueprint:
    """Gap analysis against an existing team's profile."""

    goal: ClassVar[AssessmentGoal] = AssessmentGoal.TEAM_FIT

    team_id: Optional[uuid.UUID] = None
    saturation_threshold: float = DEFAULT_SATURATION_THRESHOLD
    target_role: Optional[str] = None
    role_competency_weights: Dict[uuid.UUID, float] = field(default_factory=dict)
    competency_ids: Tuple[uuid.UUID, ...] = ()
    distribution: DistributionStrategy = DistributionStrategy.WEIGHTED
    shuffle: bool = True


Blueprint = Union[OverviewBlueprint, JobFitBlueprint, TeamFitBlueprint]


def blueprint_competency_ids(blueprint: Blueprint) -> List[uuid.UUID]:
    """Competencies a blueprint names up front (before any benchmark/team lookup)."""
    match blueprint:
        case OverviewBlueprint(competency_ids=ids) | JobFitBlueprint(competency_ids=ids):
            return list(dict.fromkeys(ids))
        case TeamFitBlueprint():
            return list(
                dict.fromkeys(
                    list(blueprint.competency_ids) + list(blueprint.role_competency_weights)
                )
            )
    return []


class IssueSeverity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class ValidationIssue:
    """One validation finding, addressable by id and by blueprint field."""

    id: str
    severity: IssueSeverity
    message: str
    field: Optional[str] = None
    competency_id: Optional[uuid.UUID] = None

    @classmethod
    def error(cls, issue_id: str, message: str, **kwargs) -> "ValidationIssue":
        return cls(issue_id, IssueSeverity.ERROR, message, **kwargs)

    @classmethod
    def warning(cls, issue_id: str, message: str, **kwargs) -> "ValidationIssue":
        return cls(issue_id, IssueSeverity.WARNING, message, **kwargs)


@dataclass(frozen=True)
class BlueprintValidationResult:
    valid: bool
    errors: Tuple[ValidationIssue, ...]
    warnings: Tuple[ValidationIssue, ...]
    can_simulate: bool
    can_publish: bool


# Errors that leave nothing to simulate against
_STRUCTURAL_ERRORS = frozenset({"null-blueprint", "no-strategy", "no-competencies"})


class BlueprintValidator:
    """
    Checks a blueprint's fields and its question inventory.

    Zero eligible questions for a named competency is an error; fewer than
    ``min_questions_per_competency`` is a warning. A blueprint naming a
    single competency gets a weight-concentration warning. JobFit and
    TeamFit blueprints may resolve their competencies at assembly time, so
    an empty explicit list is only an error for Overview.
    """

    def __init__(
        self,
        engine: "QuestionSelectionEngine",
        min_questions_per_competency: int = 3,
    ):
        self.engine = engine
        self.min_questions_per_competency = min_questions_per_competency

    def validate(
        self, blueprint: Optional[Blueprint], for_publishing: bool = True
    ) -> BlueprintValidationResult:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        if blueprint is None:
            errors.append(
                ValidationIssue.error(
                    "null-blueprint",
                    "A blueprint is required. Add at least one competency.",
                    field="blueprint",
                )
            )
        elif not isinstance(blueprint, (OverviewBlueprint, JobFitBlueprint, TeamFitBlueprint)):
            errors.append(
                ValidationIssue.error(
                    "no-strategy", "Blueprint must have a strategy defined", field="goal"
                )
            )
        else:
            self._validate_fields(blueprint, errors)
            competency_ids = blueprint_competency_ids(blueprint)
            if not competency_ids and isinstance(blueprint, OverviewBlueprint):
                errors.append(
                    ValidationIssue.error(
                        "no-competencies",
                        "Blueprint must include at least one competency",
                        field="competency_ids",
                    )
                )
            if competency_ids:
                self._validate_inventory(competency_ids, errors, warnings)
                if len(competency_ids) == 1:
                    warnings.append(
                        ValidationIssue.warning(
                            "weight-concentration",
                            "Single competency carries 100% of assessment weight. "
                            "Consider adding more competencies for a balanced assessment.",
                            field="competency_ids",
                        )
                    )

        has_errors = bool(errors)
        result = BlueprintValidationResult(
            valid=not has_errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            can_simulate=blueprint is not None
            and not any(e.id in _STRUCTURAL_ERRORS for e in errors),
            can_publish=for_publishing and not has_errors,
        )
        logger.debug(
            f"Blueprint validation: valid={result.valid}, errors={len(errors)}, "
            f"warnings={len(warnings)}"
        )
        return result

    def _validate_fields(self, blueprint: Blueprint, errors: List[ValidationIssue]) -> None:
        match blueprint:
            case OverviewBlueprint(questions_per_indicator=per_indicator):
                if not 1 <= per_indicator <= MAX_QUESTIONS_PER_INDICATOR:
                    errors.append(
                        ValidationIssue.error(
                            "invalid-questions-per-indicator",
                            f"Questions per indicator must be between 1 and "
                            f"{MAX_QUESTIONS_PER_INDICATOR}, got {per_indicator}",
                            field="questions_per_indicator",
                        )
                    )
            case JobFitBlueprint(onet_soc_code=code, strictness_level=strictness):
                if not code or not ONET_SOC_CODE_PATTERN.match(code):
                    errors.append(
                        ValidationIssue.error(
                            "invalid-onet-code",
                            "O*NET SOC code must be in format XX-XXXX.XX (e.g., 15-1252.00)",
                            field="onet_soc_code",
                        )
                    )
                if not 0 <= strictness <= 100:
                    errors.append(
                        ValidationIssue.error(
                            "invalid-strictness",
                            f"Strictness level must be between 0 and 100, got {strictness}",
                            field="strictness_level",
                        )
                    )
                if blueprint.questions_per_indicator < 1:
                    errors.append(
                        ValidationIssue.error(
                            "invalid-questions-per-indicator",
                            "At least 1 question per indicator is required",
                            field="questions_per_indicator",
                        )
                    )
            case TeamFitBlueprint(team_id=team_id, saturation_threshold=threshold):
                if team_id is None:
                    errors.append(
                        ValidationIssue.error(
                            "no-team", "Team fit blueprint requires a team id", field="team_id"
                        )
                    )
                if not 0.0 < threshold <= 1.0:
                    errors.append(
                        ValidationIssue.error(
                            "invalid-saturation-threshold",
                            f"Saturation threshold must be in (0, 1], got {threshold}",
                            field="saturation_threshold",
                        )
                    )
                for competency_id, weight in blueprint.role_competency_weights.items():
                    if weight <= 0:
                        errors.append(
                            ValidationIssue.error(
                                "invalid-role-weight",
                                f"Role weight for competency {competency_id} must be "
                                f"positive, got {weight}",
                                field="role_competency_weights",
                                competency_id=competency_id,
                            )
                        )

    def _validate_inventory(
        self,
        competency_ids: List[uuid.UUID],
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> None:
        counts = self.engine.count_eligible_by_competency(competency_ids)
        for competency_id in competency_ids:
            count = counts.get(competency_id, 0)
            if count == 0:
                errors.append(
                    ValidationIssue.error(
                        "no-questions-for-competency",
                        f"Competency {competency_id} has no available questions",
                        field="competency_ids",
                        competency_id=competency_id,
                    )
                )
            elif count < self.min_questions_per_competency:
                warnings.append(
                    ValidationIssue.warning(
                        "low-question-count",
                        f"Competency {competency_id} has only {count} questions "
                        f"(recommended minimum: {self.min_questions_per_competency})",
                        field="competency_ids",
                        competency_id=competency_id,
                    )
                )
