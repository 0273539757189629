"""
JobFit (benchmark comparison) scoring.

The candidate is compared with an occupation benchmark profile. The pass
threshold rises with the blueprint's strictness::

    effective_threshold = base_threshold + strictness / 100 * strictness_max_adjustment

Competencies carrying an occupation code are boosted (``onet_boost``,
capped by ``max_weight_multiplier``) in the overall weighted average.

Decision confidence blends three factors, each in [0, 1]:

    margin    distance between overall fraction and threshold, saturating
              at ``confidence_margin_saturation``
    evidence  share of competencies with sufficient evidence
    coverage  share of benchmark competencies actually assessed

    confidence = 0.5 * margin + 0.3 * evidence + 0.2 * coverage

A missing benchmark profile is not an error: scoring continues
self-referentially against the threshold alone, with full coverage.
"""

import logging
import math
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from libs.domain_types import AssessmentGoal

from assessment.core.blueprint import JobFitBlueprint
from assessment.core.config import JobFitThresholds, ScoringConfigurationStore
from assessment.core.name_matching import best_match
from assessment.core.precision import meets_threshold, round4
from assessment.core.scoring._types import CompetencyScore, ConfidenceLevel, ScoringResult
from assessment.core.scoring.aggregation import AggregationOutcome, AggregationPipeline
from assessment.core.scoring.base import AggregatingStrategy
from assessment.models.domain import Answer, BenchmarkProfile
from assessment.providers.base import BenchmarkProvider

logger = logging.getLogger(__name__)

MARGIN_WEIGHT = 0.5
EVIDENCE_WEIGHT = 0.3
COVERAGE_WEIGHT = 0.2

# Benchmarks are expressed on a 1-5 scale; percentages on 0-100
BENCHMARK_SCALE_FACTOR = 20.0

_NARRATIVES: Dict[Tuple[ConfidenceLevel, bool], str] = {
    (ConfidenceLevel.HIGH, True): (
        "Strong match: the candidate clearly exceeds the role requirements "
        "with solid evidence across the assessed competencies."
    ),
    (ConfidenceLevel.HIGH, False): (
        "Clear gap: the candidate falls well short of the role requirements "
        "and the evidence supports this conclusion."
    ),
    (ConfidenceLevel.MEDIUM, True): (
        "Likely match: the candidate meets the role requirements, though "
        "some competencies would benefit from further evidence."
    ),
    (ConfidenceLevel.MEDIUM, False): (
        "Likely gap: the candidate is below the role requirements; a "
        "follow-up assessment may refine this result."
    ),
    (ConfidenceLevel.LOW, True): (
        "Borderline pass: the result sits close to the threshold or rests on "
        "limited evidence. Treat it as provisional."
    ),
    (ConfidenceLevel.LOW, False): (
        "Borderline fail: the result sits close to the threshold or rests on "
        "limited evidence. A reassessment is recommended before deciding."
    ),
}


def effective_threshold(strictness_level: int, thresholds: JobFitThresholds) -> float:
    """Pass threshold as a 0-1 fraction, monotonically increasing in strictness."""
    return thresholds.base_threshold + (
        strictness_level / 100.0
    ) * thresholds.strictness_max_adjustment


def confidence_level(confidence: float, thresholds: JobFitThresholds) -> ConfidenceLevel:
    if meets_threshold(confidence, thresholds.high_confidence_threshold):
        return ConfidenceLevel.HIGH
    if meets_threshold(confidence, thresholds.medium_confidence_threshold):
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def decision_confidence(
    overall_fraction: float,
    threshold: float,
    evidence_factor: float,
    coverage_factor: float,
    margin_saturation: float,
) -> Tuple[float, float]:
    """
    Returns:
        Tuple of (confidence, margin_factor), confidence rounded to 4 places.
    """
    margin_factor = min(abs(overall_fraction - threshold) / margin_saturation, 1.0)
    confidence = (
        MARGIN_WEIGHT * margin_factor
        + EVIDENCE_WEIGHT * evidence_factor
        + COVERAGE_WEIGHT * coverage_factor
    )
    return round4(confidence), margin_factor


class JobFitScoringStrategy(AggregatingStrategy):
    goal = AssessmentGoal.JOB_FIT

    def __init__(
        self,
        pipeline: AggregationPipeline,
        config_store: ScoringConfigurationStore,
        benchmarks: BenchmarkProvider,
    ):
        super().__init__(pipeline, config_store)
        self.benchmarks = benchmarks

    def calculate(
        self,
        session_id: uuid.UUID,
        answers: Sequence[Answer],
        blueprint: JobFitBlueprint,
        outcome: Optional[AggregationOutcome] = None,
    ) -> ScoringResult:
        config = self._config()
        thresholds = config.job_fit
        logger.info(
            f"Calculating job fit score for session {session_id} "
            f"(SOC: {blueprint.onet_soc_code}, strictness: {blueprint.strictness_level})"
        )

        _, scores = self._aggregate(
            answers, thresholds.min_questions_per_competency, outcome
        )
        threshold = effective_threshold(blueprint.strictness_level, thresholds)

        extended: Dict[str, object] = {
            "onet_soc_code": blueprint.onet_soc_code,
            "strictness_level": blueprint.strictness_level,
            "effective_threshold": round4(threshold),
        }

        # Boost-weighted overall percentage
        weights: List[float] = []
        for score in scores:
            weight = 1.0
            if score.onet_code:
                weight = min(config.weights.onet_boost, config.weights.max_weight_multiplier)
            score.weight_applied = round4(weight)
            weights.append(weight)
        total_weight = math.fsum(weights)
        if total_weight > 0:
            overall_percentage = (
                math.fsum(w * s.percentage for w, s in zip(weights, scores)) / total_weight
            )
            overall_score = math.fsum(w * s.score for w, s in zip(weights, scores)) / total_weight
        else:
            overall_percentage = 0.0
            overall_score = 0.0

        profile = self._load_benchmark(blueprint.onet_soc_code)
        if profile is None:
            extended["benchmark_note"] = (
                f"No benchmark profile found for {blueprint.onet_soc_code}; "
                "scored against the threshold only"
            )
            coverage_factor = 1.0
        else:
            extended["benchmark_title"] = profile.title
            coverage_factor = self._apply_benchmarks(profile, scores, extended)

        sufficient = sum(1 for s in scores if not s.insufficient_evidence)
        evidence_factor = sufficient / len(scores) if scores else 0.0

        overall_fraction = overall_percentage / 100.0
        passed = meets_threshold(overall_fraction, threshold)
        confidence, margin_factor = decision_confidence(
            overall_fraction,
            threshold,
            evidence_factor,
            coverage_factor,
            thresholds.confidence_margin_saturation,
        )
        level = confidence_level(confidence, thresholds)
        extended["confidence_factors"] = {
            "margin": round4(margin_factor),
            "evidence": round4(evidence_factor),
            "coverage": round4(coverage_factor),
        }

        logger.info(
            f"Job fit assessment {'PASSED' if passed else 'FAILED'} for session {session_id} "
            f"(score: {overall_percentage:.2f}%, required: {threshold * 100:.2f}%, "
            f"confidence: {confidence} {level.value})"
        )

        return ScoringResult(
            session_id=session_id,
            goal=self.goal,
            overall_score=round4(overall_score),
            overall_percentage=round4(overall_percentage),
            competency_scores=scores,
            passed=passed,
            extended_metrics=extended,
            decision_confidence=confidence,
            confidence_level=level,
            confidence_message=_NARRATIVES[(level, passed)],
        )

    def _load_benchmark(self, onet_soc_code: Optional[str]) -> Optional[BenchmarkProfile]:
        if not onet_soc_code:
            return None
        profile = self.benchmarks.get_benchmark(onet_soc_code)
        if profile is None:
            logger.warning(
                f"No benchmark profile for SOC code {onet_soc_code}; "
                "falling back to self-referential scoring"
            )
        return profile

    def _apply_benchmarks(
        self,
        profile: BenchmarkProfile,
        scores: List[CompetencyScore],
        extended: Dict[str, object],
    ) -> float:
        """Annotate matched competencies; return the coverage factor."""
        if not profile.benchmarks:
            return 1.0

        candidates = [(s.competency_name, s) for s in scores]
        matched = 0
        unmatched: List[str] = []
        for benchmark_name, value in profile.benchmarks.items():
            score = best_match(benchmark_name, candidates)
            if score is None:
                unmatched.append(benchmark_name)
                continue
            matched += 1
            benchmark_score = value * BENCHMARK_SCALE_FACTOR
            score.benchmark_score = round4(benchmark_score)
            score.meets_benchmark = meets_threshold(score.percentage, benchmark_score)
            score.benchmark_gap = round4(score.percentage - benchmark_score)

        if unmatched:
            logger.debug(
                f"{len(unmatched)} benchmark competencies were not assessed: {unmatched}"
            )
        extended["unmatched_benchmarks"] = unmatched
        coverage = matched / len(profile.benchmarks)
        extended["benchmark_coverage"] = round4(coverage)
        return coverage
