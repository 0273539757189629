"""
Two-level score aggregation: answers -> indicators -> competencies.

Level 1 (IndicatorAggregator)
    Each scorable answer is normalized to [0, 1] and added to its question's
    behavioral indicator: ``percentage = sum / count * 100``.

Level 2 (CompetencyAggregator)
    Indicators roll up into their competency as a weighted mean of indicator
    percentages, weight = indicator weight::

        pct_c = sum(w_i * pct_i) / sum(w_i)

    Score and max-score sums are weighted the same way so the raw-unit
    breakdown stays consistent with the percentage.

Because each indicator percentage is itself a mean, the roll-up equals a
direct weighted average over raw answers where an answer on indicator i
carries weight ``w_i / n_i``. Sums use ``math.fsum`` so the result does not
depend on answer order.

Question, indicator and competency definitions are batch-loaded once per
call. Answers whose question, indicator or competency cannot be resolved
are logged and skipped; they never abort the run.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from assessment.core.scoring._types import CompetencyScore, IndicatorScore
from assessment.core.scoring.normalizer import AnswerNormalizer
from assessment.models.domain import Answer, Competency, Indicator, Question
from assessment.providers.base import (
    CompetencyRepository,
    IndicatorRepository,
    QuestionRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class IndicatorAggregate:
    """Running totals for one behavioral indicator."""

    indicator: Indicator
    scores: List[float] = field(default_factory=list)

    def add_answer(self, normalized_score: float) -> None:
        self.scores.append(normalized_score)

    @property
    def question_count(self) -> int:
        return len(self.scores)

    @property
    def total_score(self) -> float:
        return math.fsum(self.scores)

    @property
    def max_score(self) -> float:
        # Every normalized answer is worth at most 1.0
        return float(self.question_count)

    @property
    def percentage(self) -> float:
        if not self.scores:
            return 0.0
        return self.total_score / self.max_score * 100.0

    def to_score(self) -> IndicatorScore:
        return IndicatorScore(
            indicator_id=self.indicator.id,
            indicator_title=self.indicator.title,
            weight=self.indicator.weight,
            score=self.total_score,
            max_score=self.max_score,
            percentage=self.percentage,
            questions_answered=self.question_count,
        )


@dataclass
class CompetencyAggregate:
    """Weighted roll-up of a competency's indicator aggregates."""

    competency: Competency
    indicators: List[IndicatorAggregate] = field(default_factory=list)

    @property
    def total_weight(self) -> float:
        return math.fsum(a.indicator.weight for a in self.indicators)

    @property
    def percentage(self) -> float:
        total_weight = self.total_weight
        if total_weight <= 0:
            return 0.0
        weighted = math.fsum(a.indicator.weight * a.percentage for a in self.indicators)
        return weighted / total_weight

    @property
    def score(self) -> float:
        return math.fsum(a.indicator.weight * a.total_score for a in self.indicators)

    @property
    def max_score(self) -> float:
        return math.fsum(a.indicator.weight * a.max_score for a in self.indicators)

    @property
    def question_count(self) -> int:
        return sum(a.question_count for a in self.indicators)

    def to_score(self) -> CompetencyScore:
        ordered = sorted(
            self.indicators, key=lambda a: (-a.indicator.weight, a.indicator.title, str(a.indicator.id))
        )
        return CompetencyScore(
            competency_id=self.competency.id,
            competency_name=self.competency.name,
            score=self.score,
            max_score=self.max_score,
            percentage=self.percentage,
            questions_answered=self.question_count,
            indicator_scores=[a.to_score() for a in ordered],
            onet_code=self.competency.onet_code,
            esco_uri=self.competency.esco_uri,
            big_five_category=self.competency.big_five_category,
        )


@dataclass
class AggregationOutcome:
    """Everything the strategies need from one aggregation pass."""

    indicators: Dict[uuid.UUID, IndicatorAggregate]
    competencies: Dict[uuid.UUID, CompetencyAggregate]
    # Normalized score per answered question, kept for consistency analysis
    normalized_scores: Dict[uuid.UUID, float]
    question_competency: Dict[uuid.UUID, uuid.UUID]

    def competency_scores(self) -> List[CompetencyScore]:
        """Competency breakdowns in a stable order (name, then id)."""
        ordered = sorted(
            self.competencies.values(),
            key=lambda c: (c.competency.name, str(c.competency.id)),
        )
        return [c.to_score() for c in ordered]


class IndicatorAggregator:
    """Level 1: normalize answers and accumulate them per indicator."""

    def __init__(
        self,
        normalizer: AnswerNormalizer,
        questions: QuestionRepository,
        indicators: IndicatorRepository,
    ):
        self.normalizer = normalizer
        self.questions = questions
        self.indicators = indicators

    def aggregate(
        self, answers: Sequence[Answer]
    ) -> "tuple[Dict[uuid.UUID, IndicatorAggregate], Dict[uuid.UUID, float], Dict[uuid.UUID, Question]]":
        scorable = [a for a in answers if a.is_scorable]
        skipped = len(answers) - len(scorable)
        if skipped:
            logger.debug(f"Excluded {skipped} skipped or unanswered answers from scoring")

        question_map = self.questions.get_questions(a.question_id for a in scorable)
        indicator_map = self.indicators.get_indicators(
            q.indicator_id for q in question_map.values()
        )

        aggregates: Dict[uuid.UUID, IndicatorAggregate] = {}
        normalized: Dict[uuid.UUID, float] = {}
        for answer in scorable:
            question = question_map.get(answer.question_id)
            if question is None:
                logger.warning(
                    f"Question {answer.question_id} not found; skipping its answer"
                )
                continue
            indicator = indicator_map.get(question.indicator_id)
            if indicator is None:
                logger.warning(
                    f"Indicator {question.indicator_id} for question {question.id} "
                    "not found; skipping its answer"
                )
                continue

            value = self.normalizer.normalize(answer, question.question_type)
            normalized[question.id] = value
            aggregate = aggregates.get(indicator.id)
            if aggregate is None:
                aggregate = aggregates[indicator.id] = IndicatorAggregate(indicator)
            aggregate.add_answer(value)

        return aggregates, normalized, question_map


class CompetencyAggregator:
    """Level 2: roll indicator aggregates up into competencies."""

    def __init__(self, competencies: CompetencyRepository):
        self.competencies = competencies

    def roll_up(
        self, indicator_aggregates: Iterable[IndicatorAggregate]
    ) -> Dict[uuid.UUID, CompetencyAggregate]:
        aggregates = list(indicator_aggregates)
        competency_map = self.competencies.get_competencies(
            a.indicator.competency_id for a in aggregates
        )

        result: Dict[uuid.UUID, CompetencyAggregate] = {}
        for aggregate in aggregates:
            competency_id = aggregate.indicator.competency_id
            competency = competency_map.get(competency_id)
            if competency is None:
                logger.warning(
                    f"Competency {competency_id} for indicator "
                    f"{aggregate.indicator.id} not found; dropping "
                    f"{aggregate.question_count} answers"
                )
                continue
            rollup = result.get(competency_id)
            if rollup is None:
                rollup = result[competency_id] = CompetencyAggregate(competency)
            rollup.indicators.append(aggregate)
        return result


class AggregationPipeline:
    """Runs both aggregation levels for one session's answers."""

    def __init__(
        self,
        normalizer: AnswerNormalizer,
        questions: QuestionRepository,
        indicators: IndicatorRepository,
        competencies: CompetencyRepository,
    ):
        self.indicator_aggregator = IndicatorAggregator(normalizer, questions, indicators)
        self.competency_aggregator = CompetencyAggregator(competencies)

    def aggregate(self, answers: Sequence[Answer]) -> AggregationOutcome:
        indicator_aggs, normalized, question_map = self.indicator_aggregator.aggregate(answers)
        competency_aggs = self.competency_aggregator.roll_up(indicator_aggs.values())

        question_competency: Dict[uuid.UUID, uuid.UUID] = {}
        for question_id in normalized:
            question = question_map[question_id]
            indicator_agg = indicator_aggs.get(question.indicator_id)
            if indicator_agg is not None:
                question_competency[question_id] = indicator_agg.indicator.competency_id

        logger.debug(
            f"Aggregated {len(normalized)} answers into {len(indicator_aggs)} indicators "
            f"and {len(competency_aggs)} competencies"
        )
        return AggregationOutcome(
            indicators=indicator_aggs,
            competencies=competency_aggs,
            normalized_scores=normalized,
            question_competency=question_competency,
        )


def apply_evidence_sufficiency(
    scores: Iterable[CompetencyScore], min_questions: int
) -> int:
    """
    Flag competencies scored from fewer than ``min_questions`` answers.

    Returns:
        Number of competencies flagged.
    """
    flagged = 0
    for score in scores:
        if score.questions_answered < min_questions:
            score.insufficient_evidence = True
            score.evidence_note = (
                f"Score based on {score.questions_answered} question(s); "
                f"minimum {min_questions} required"
            )
            flagged += 1
        else:
            score.insufficient_evidence = False
            score.evidence_note = None
    return flagged
