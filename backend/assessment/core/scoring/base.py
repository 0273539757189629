"""
Scoring strategy protocol and the aggregation step all strategies share.
"""

import logging
import uuid
from typing import List, Optional, Protocol, Sequence, Tuple

from libs.domain_types import AssessmentGoal

from assessment.core.config import ScoringConfiguration, ScoringConfigurationStore
from assessment.core.scoring._types import CompetencyScore, ScoringResult
from assessment.core.scoring.aggregation import (
    AggregationOutcome,
    AggregationPipeline,
    apply_evidence_sufficiency,
)
from assessment.models.domain import Answer

logger = logging.getLogger(__name__)


class ScoringStrategy(Protocol):
    """
    Protocol for goal-specific scoring algorithms.

    Implementations read their thresholds from the configuration store at
    the start of every ``calculate`` call, never at construction time.
    """

    goal: AssessmentGoal

    def calculate(
        self,
        session_id: uuid.UUID,
        answers: Sequence[Answer],
        blueprint: object,
        outcome: Optional[AggregationOutcome] = None,
    ) -> ScoringResult:
        ...


class AggregatingStrategy:
    """Shared plumbing: config lookup plus the two-level aggregation."""

    goal: AssessmentGoal

    def __init__(
        self, pipeline: AggregationPipeline, config_store: ScoringConfigurationStore
    ):
        self.pipeline = pipeline
        self.config_store = config_store

    def _config(self) -> ScoringConfiguration:
        return self.config_store.get()

    def _aggregate(
        self,
        answers: Sequence[Answer],
        min_questions: int,
        outcome: Optional[AggregationOutcome] = None,
    ) -> Tuple[AggregationOutcome, List[CompetencyScore]]:
        # Callers that already aggregated (the scoring service) pass the outcome in
        if outcome is None:
            outcome = self.pipeline.aggregate(answers)
        scores = outcome.competency_scores()
        flagged = apply_evidence_sufficiency(scores, min_questions)
        if flagged:
            logger.warning(
                f"{flagged} of {len(scores)} competencies have insufficient evidence "
                f"(minimum {min_questions} questions)"
            )
        return outcome, scores
