"""
Overview (universal baseline) scoring.

Produces a competency passport: an evidence-weighted overall percentage and
a profile band for every competency. There is no pass/fail decision.

Competency weight = ``max(questions_answered, 1)``, halved (by
``low_evidence_weight_factor``) when evidence is insufficient. Bands are
assigned first-match-wins on rounded comparisons:

    SIGNATURE_STRENGTH  pct >= overall + band_width and pct >= strength
    STRENGTH            pct >= strength
    CRITICAL_GAP        pct <  critical_gap
    DEVELOPING          pct >= development
    AVERAGE             everything else
"""

import logging
import math
import uuid
from collections import Counter
from typing import Dict, List, Optional, Sequence

from libs.domain_types import AssessmentGoal

from assessment.core.config import OverviewThresholds
from assessment.core.precision import is_below, meets_threshold, round4
from assessment.core.scoring._types import CompetencyBand, CompetencyScore, ScoringResult
from assessment.core.scoring.aggregation import AggregationOutcome
from assessment.core.scoring.base import AggregatingStrategy
from assessment.models.domain import Answer

logger = logging.getLogger(__name__)


def classify_band(
    percentage: float, overall_percentage: float, thresholds: OverviewThresholds
) -> CompetencyBand:
    """Assign exactly one profile band to a competency percentage."""
    if meets_threshold(
        percentage, overall_percentage + thresholds.profile_band_width
    ) and meets_threshold(percentage, thresholds.strength_threshold):
        return CompetencyBand.SIGNATURE_STRENGTH
    if meets_threshold(percentage, thresholds.strength_threshold):
        return CompetencyBand.STRENGTH
    if is_below(percentage, thresholds.critical_gap_threshold):
        return CompetencyBand.CRITICAL_GAP
    if meets_threshold(percentage, thresholds.development_threshold):
        return CompetencyBand.DEVELOPING
    return CompetencyBand.AVERAGE


def evidence_weight(score: CompetencyScore, thresholds: OverviewThresholds) -> float:
    weight = float(max(score.questions_answered, 1))
    if score.insufficient_evidence:
        weight *= thresholds.low_evidence_weight_factor
    return weight


class OverviewScoringStrategy(AggregatingStrategy):
    goal = AssessmentGoal.OVERVIEW

    def calculate(
        self,
        session_id: uuid.UUID,
        answers: Sequence[Answer],
        blueprint: object = None,
        outcome: Optional[AggregationOutcome] = None,
    ) -> ScoringResult:
        thresholds = self._config().overview
        logger.info(f"Calculating overview score for session {session_id}")

        _, scores = self._aggregate(
            answers, thresholds.min_questions_per_competency, outcome
        )

        weights = [evidence_weight(s, thresholds) for s in scores]
        total_weight = math.fsum(weights)
        if total_weight > 0:
            overall_percentage = (
                math.fsum(w * s.percentage for w, s in zip(weights, scores)) / total_weight
            )
            overall_score = math.fsum(w * s.score for w, s in zip(weights, scores)) / total_weight
        else:
            overall_percentage = 0.0
            overall_score = 0.0

        pattern: Dict[str, List[str]] = {}
        for score in scores:
            score.band = classify_band(score.percentage, overall_percentage, thresholds)
            score.weight_applied = round4(evidence_weight(score, thresholds))
            pattern.setdefault(score.band.value, []).append(score.competency_name)

        counts = Counter(s.band.value for s in scores)
        logger.info(
            f"Overview score for session {session_id}: {overall_percentage:.2f}% "
            f"across {len(scores)} competencies"
        )

        return ScoringResult(
            session_id=session_id,
            goal=self.goal,
            overall_score=round4(overall_score),
            overall_percentage=round4(overall_percentage),
            competency_scores=scores,
            passed=None,
            extended_metrics={
                "profile_pattern": pattern,
                "band_counts": {band: counts[band] for band in pattern},
                "insufficient_evidence_count": sum(1 for s in scores if s.insufficient_evidence),
            },
        )
