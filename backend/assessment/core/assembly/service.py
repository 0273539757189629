"""
Goal-specific test assembly.

``TestAssemblyService.assemble`` turns a validated blueprint into an ordered
list of question ids:

    OVERVIEW   every named competency, context-neutral questions only, with
               the graduated difficulty waterfall
    JOB_FIT    competencies resolved from the occupation benchmark by name
               (plus any explicit ids), difficulty driven by strictness
    TEAM_FIT   the team's least saturated competencies, weighted towards the
               biggest gaps

Randomness comes from a ``SelectionContext`` seeded with the session id, so
re-assembling the same session over the same inventory yields the same
questions in the same order. An assembly that selects nothing fails with
``InsufficientInventoryError``. Exposure counters are written only after the
question set is final; a failed assembly writes nothing.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from libs.domain_types import DifficultyLevel

from assessment.core.blueprint import (
    Blueprint,
    BlueprintValidator,
    JobFitBlueprint,
    OverviewBlueprint,
    TeamFitBlueprint,
    ValidationIssue,
)
from assessment.core.exceptions import (
    BlueprintValidationError,
    InsufficientInventoryError,
)
from assessment.core.name_matching import best_match
from assessment.core.selection import (
    ExposureTracker,
    QuestionSelectionEngine,
    SelectionContext,
    SelectionWarning,
    WarningCode,
)
from assessment.providers.base import BenchmarkProvider, TeamProfileProvider

from .progress import AssemblyPhase, AssemblyProgressTracker

logger = logging.getLogger(__name__)

STRICT_DIFFICULTY_LEVEL = 70
LENIENT_DIFFICULTY_LEVEL = 30

# Saturation assumed for competencies the team profile does not cover
UNKNOWN_SATURATION = 1.0

# (upper saturation bound, questions): lower saturation means a bigger gap
TEAM_GAP_QUESTION_COUNTS: Tuple[Tuple[float, int], ...] = (
    (0.1, 6),
    (0.3, 4),
    (0.5, 3),
)
MINIMAL_GAP_QUESTION_COUNT = 2


@dataclass
class AssemblyResult:
    question_ids: List[uuid.UUID]
    warnings: List[SelectionWarning] = field(default_factory=list)
    seed: Optional[int] = None
    validation_warnings: Tuple[ValidationIssue, ...] = ()


def difficulty_for_strictness(strictness_level: int) -> DifficultyLevel:
    if strictness_level >= STRICT_DIFFICULTY_LEVEL:
        return DifficultyLevel.ADVANCED
    if strictness_level <= LENIENT_DIFFICULTY_LEVEL:
        return DifficultyLevel.FOUNDATIONAL
    return DifficultyLevel.INTERMEDIATE


def questions_for_saturation(saturation: float) -> int:
    for bound, count in TEAM_GAP_QUESTION_COUNTS:
        if saturation < bound:
            return count
    return MINIMAL_GAP_QUESTION_COUNT


class TestAssemblyService:
    """Validates, selects, shuffles and commits exposure for one session."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        engine: QuestionSelectionEngine,
        validator: BlueprintValidator,
        exposure: ExposureTracker,
        progress: AssemblyProgressTracker,
        benchmarks: BenchmarkProvider,
        teams: TeamProfileProvider,
    ):
        self.engine = engine
        self.validator = validator
        self.exposure = exposure
        self.progress = progress
        self.benchmarks = benchmarks
        self.teams = teams

    def assemble(
        self,
        session_id: uuid.UUID,
        blueprint: Blueprint,
        template_id: Optional[uuid.UUID] = None,
    ) -> AssemblyResult:
        """
        Assemble the question set for one session.

        Raises:
            BlueprintValidationError: If the blueprint has validation errors.
                Nothing is tracked or written in that case.
            InsufficientInventoryError: If no question could be selected.
                Progress is marked failed and no exposure is written.
        """
        validation = self.validator.validate(blueprint, for_publishing=False)
        if not validation.valid:
            raise BlueprintValidationError(
                "Blueprint failed validation",
                issues=validation.errors,
                context=f"session_id={session_id}",
            )

        ctx = SelectionContext.for_session(session_id)
        self.progress.start(
            session_id, template_id, type(blueprint).goal, len(blueprint.competency_ids)
        )
        try:
            match blueprint:
                case OverviewBlueprint():
                    selected = self._assemble_overview(blueprint, ctx)
                case JobFitBlueprint():
                    selected = self._assemble_job_fit(blueprint, ctx)
                case TeamFitBlueprint():
                    selected = self._assemble_team_fit(blueprint, ctx)
                case _:
                    raise TypeError(f"Unsupported blueprint type: {type(blueprint).__name__}")

            if not selected:
                raise InsufficientInventoryError(
                    "No eligible questions could be selected",
                    context=f"session_id={session_id}, goal={type(blueprint).goal.value}",
                )

            self._report_competencies(session_id, selected)

            if blueprint.shuffle and selected:
                self.progress.update_phase(
                    session_id, AssemblyPhase.SHUFFLING, 90.0, "Shuffling questions"
                )
                ctx.rng.shuffle(selected)

            self.exposure.track_exposure(selected)
        except Exception as e:
            self.progress.fail(session_id, str(e))
            raise

        self.progress.complete(session_id, len(selected))
        logger.info(
            f"Assembled {len(selected)} questions for session {session_id} "
            f"({type(blueprint).goal.value}, {len(ctx.warnings)} warnings)"
        )
        return AssemblyResult(
            question_ids=selected,
            warnings=list(ctx.warnings),
            seed=ctx.seed,
            validation_warnings=validation.warnings,
        )

    def _assemble_overview(
        self, blueprint: OverviewBlueprint, ctx: SelectionContext
    ) -> List[uuid.UUID]:
        return self.engine.select_questions_for_competencies(
            blueprint.competency_ids,
            blueprint.questions_per_indicator,
            context_neutral_only=blueprint.context_neutral_only,
            ctx=ctx,
            distribution=blueprint.distribution,
        )

    def _assemble_job_fit(
        self, blueprint: JobFitBlueprint, ctx: SelectionContext
    ) -> List[uuid.UUID]:
        competency_ids = self._resolve_benchmark_competencies(blueprint, ctx)
        if not competency_ids:
            logger.warning(
                f"No competencies resolved for job fit assembly (SOC: {blueprint.onet_soc_code})"
            )
            return []

        difficulty = difficulty_for_strictness(blueprint.strictness_level)
        logger.info(
            f"Assembling JOB_FIT test for SOC code {blueprint.onet_soc_code}: "
            f"{len(competency_ids)} competencies at {difficulty.value} difficulty"
        )
        return self.engine.select_questions_for_competencies(
            competency_ids,
            blueprint.questions_per_indicator,
            preferred_difficulty=difficulty,
            ctx=ctx,
            distribution=blueprint.distribution,
        )

    def _resolve_benchmark_competencies(
        self, blueprint: JobFitBlueprint, ctx: SelectionContext
    ) -> List[uuid.UUID]:
        """Benchmark competencies, largest requirement first, then explicit ids."""
        resolved: List[uuid.UUID] = []
        profile = (
            self.benchmarks.get_benchmark(blueprint.onet_soc_code)
            if blueprint.onet_soc_code
            else None
        )
        if profile is None:
            if blueprint.onet_soc_code:
                ctx.warn(
                    WarningCode.BENCHMARK_NOT_FOUND,
                    f"No benchmark profile found for occupation {blueprint.onet_soc_code}",
                    occupation_code=blueprint.onet_soc_code,
                )
        else:
            candidates = [
                (c.name, c.id) for c in self.engine.competencies.list_competencies() if c.is_active
            ]
            ranked = sorted(profile.benchmarks.items(), key=lambda kv: (-kv[1], kv[0]))
            for name, _ in ranked:
                competency_id = best_match(name, candidates)
                if competency_id is None:
                    ctx.warn(
                        WarningCode.BENCHMARK_COMPETENCY_UNMATCHED,
                        f"Benchmark competency '{name}' has no matching competency",
                        benchmark_name=name,
                    )
                    continue
                resolved.append(competency_id)

        resolved.extend(blueprint.competency_ids)
        return list(dict.fromkeys(resolved))

    def _assemble_team_fit(
        self, blueprint: TeamFitBlueprint, ctx: SelectionContext
    ) -> List[uuid.UUID]:
        team = self.teams.get_team_profile(blueprint.team_id)
        saturation: Dict[uuid.UUID, float] = {}
        if team is None:
            ctx.warn(
                WarningCode.TEAM_PROFILE_NOT_FOUND,
                f"No team profile found for team {blueprint.team_id}",
                team_id=str(blueprint.team_id),
            )
        else:
            saturation = dict(team.competency_saturation)

        if blueprint.competency_ids:
            competency_ids = list(blueprint.competency_ids)
        else:
            under = [c for c, s in saturation.items() if s < blueprint.saturation_threshold]
            # Without gaps, assess everything the team profile covers
            competency_ids = under or list(saturation)
        if not competency_ids:
            logger.warning(f"No competencies to assess for team {blueprint.team_id}")
            return []

        competency_ids.sort(key=lambda c: (saturation.get(c, UNKNOWN_SATURATION), str(c)))
        weights: Dict[uuid.UUID, float] = {}
        total_questions = 0
        for competency_id in competency_ids:
            level = saturation.get(competency_id, UNKNOWN_SATURATION)
            role_weight = blueprint.role_competency_weights.get(competency_id, 1.0)
            weights[competency_id] = role_weight * (1.0 + (1.0 - level))
            total_questions += questions_for_saturation(level)

        logger.info(
            f"Assembling TEAM_FIT test for team {blueprint.team_id}: "
            f"{len(competency_ids)} competencies, {total_questions} questions"
        )
        return self.engine.select_questions_weighted(weights, total_questions, ctx=ctx)

    def _report_competencies(self, session_id: uuid.UUID, selected: Sequence[uuid.UUID]) -> None:
        """Publish one progress step per competency that received questions."""
        if not selected:
            return
        questions = self.engine.questions.get_questions(selected)
        indicators = self.engine.indicators.get_indicators(
            {q.indicator_id for q in questions.values()}
        )
        per_competency = Counter(
            indicators[q.indicator_id].competency_id
            for q in questions.values()
            if q.indicator_id in indicators
        )
        names = self.engine.competencies.get_competencies(per_competency)
        for competency_id, count in sorted(per_competency.items(), key=lambda kv: str(kv[0])):
            competency = names.get(competency_id)
            self.progress.increment_competency(
                session_id, count, competency.name if competency else str(competency_id)
            )
