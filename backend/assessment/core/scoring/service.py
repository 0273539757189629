"""
Scoring dispatcher.

``ScoringService.score`` picks the strategy matching the blueprint, runs it,
and then applies the non-critical enrichment steps (proficiency labels,
confidence intervals, response consistency). A strategy failure never
surfaces partial data: the caller receives a PENDING placeholder that can be
retried later.
"""

import logging
import uuid
from typing import Optional, Sequence

from assessment.core.blueprint import (
    Blueprint,
    JobFitBlueprint,
    OverviewBlueprint,
    TeamFitBlueprint,
)
from assessment.core.config import ScoringConfigurationStore, scoring_config_store
from assessment.core.exceptions import ScoringError
from assessment.core.graceful_failure import graceful_failure
from assessment.core.scoring._types import ScoringResult
from assessment.core.scoring.aggregation import AggregationOutcome, AggregationPipeline
from assessment.core.scoring.base import ScoringStrategy
from assessment.core.scoring.confidence_interval import ConfidenceIntervalCalculator
from assessment.core.scoring.consistency import ResponseConsistencyAnalyzer
from assessment.core.scoring.interpretation import ScoreInterpreter
from assessment.core.scoring.job_fit import JobFitScoringStrategy
from assessment.core.scoring.normalizer import AnswerNormalizer
from assessment.core.scoring.overview import OverviewScoringStrategy
from assessment.core.scoring.team_fit import TeamFitScoringStrategy
from assessment.models.domain import Answer
from assessment.providers.base import (
    BenchmarkProvider,
    CompetencyRepository,
    IndicatorRepository,
    QuestionRepository,
    ReliabilityProvider,
    TeamProfileProvider,
)

logger = logging.getLogger(__name__)


class ScoringService:
    """Entry point for scoring a completed session."""

    def __init__(
        self,
        questions: QuestionRepository,
        indicators: IndicatorRepository,
        competencies: CompetencyRepository,
        benchmarks: BenchmarkProvider,
        teams: TeamProfileProvider,
        reliability: Optional[ReliabilityProvider] = None,
        config_store: Optional[ScoringConfigurationStore] = None,
        locale: str = "en",
    ):
        store = config_store or scoring_config_store
        self.pipeline = AggregationPipeline(
            AnswerNormalizer(), questions, indicators, competencies
        )
        self.overview = OverviewScoringStrategy(self.pipeline, store)
        self.job_fit = JobFitScoringStrategy(self.pipeline, store, benchmarks)
        self.team_fit = TeamFitScoringStrategy(self.pipeline, store, teams)
        self.interpreter = ScoreInterpreter(locale)
        self.ci_calculator = (
            ConfidenceIntervalCalculator(reliability) if reliability is not None else None
        )
        self.consistency = ResponseConsistencyAnalyzer()

    def strategy_for(self, blueprint: Blueprint) -> ScoringStrategy:
        match blueprint:
            case OverviewBlueprint():
                return self.overview
            case JobFitBlueprint():
                return self.job_fit
            case TeamFitBlueprint():
                return self.team_fit
            case _:
                raise ScoringError(
                    "Unsupported blueprint type",
                    context=f"blueprint_type={type(blueprint).__name__}",
                )

    def score(
        self, session_id: uuid.UUID, answers: Sequence[Answer], blueprint: Blueprint
    ) -> ScoringResult:
        """
        Score one session.

        Args:
            session_id: Session being scored.
            answers: All recorded answers, skipped and unanswered included.
            blueprint: The blueprint the test was assembled from.

        Returns:
            A COMPLETED result, or a PENDING placeholder when the strategy
            failed.

        Raises:
            ScoringError: If the blueprint type is not supported.
        """
        strategy = self.strategy_for(blueprint)
        try:
            outcome = self.pipeline.aggregate(answers)
            result = strategy.calculate(session_id, answers, blueprint, outcome=outcome)
        except Exception as e:
            logger.exception(
                f"Scoring failed for session {session_id} ({strategy.goal.value}); "
                "storing pending placeholder"
            )
            return ScoringResult.pending(session_id, strategy.goal, reason=str(e))

        self._enrich(result, answers, outcome)
        return result

    def _enrich(
        self, result: ScoringResult, answers: Sequence[Answer], outcome: AggregationOutcome
    ) -> None:
        context = {"session_id": result.session_id}

        with graceful_failure("interpret proficiency levels", logger, context=context):
            self.interpreter.enrich(result.competency_scores)

        if self.ci_calculator is not None:
            with graceful_failure("enrich confidence intervals", logger, context=context):
                enriched = self.ci_calculator.enrich(result.competency_scores)
                logger.debug(
                    f"Confidence intervals added to {enriched} of "
                    f"{len(result.competency_scores)} competencies"
                )

        with graceful_failure(
            "analyze response consistency", logger, exc_info=True, context=context
        ):
            consistency = self.consistency.analyze(
                answers, outcome.normalized_scores, outcome.question_competency
            )
            result.extended_metrics["consistency"] = consistency.to_dict()
            if consistency.flags:
                logger.info(
                    f"Session {result.session_id} consistency flags: "
                    f"{'; '.join(consistency.flags)}"
                )
