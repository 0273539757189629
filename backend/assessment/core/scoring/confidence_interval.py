"""
Standard Error of Measurement and confidence intervals for competency scores.

Uses Classical Test Theory::

    SEM = SD * sqrt(1 - alpha)
    CI  = percentage +/- z * SEM        (95%: z = 1.96), clamped to [0, 100]

The score SD depends on how much reliability data backs it:

    n >= 30       observed SD (DEFAULT_SD when none was recorded)
    5 < n < 30    DEFAULT_SD * sqrt(30 / n), widening the interval for
                  small samples
    n <= 5        DEFAULT_SD, logged as a warning when n > 0

Competencies whose alpha is missing or outside (0, 1] get no interval.

Reliability Interpretation:
    alpha >= 0.90: Excellent
    alpha >= 0.80: Good
    alpha >= 0.70: Acceptable
    alpha <  0.70: Intervals become wide enough to be of limited use
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from assessment.core.precision import clamp
from assessment.core.scoring._types import CompetencyScore
from assessment.models.domain import CompetencyReliability
from assessment.providers.base import ReliabilityProvider

logger = logging.getLogger(__name__)

Z_95 = 1.96
DEFAULT_SD = 15.0
LARGE_SAMPLE_SIZE = 30
SMALL_SAMPLE_SIZE = 5


@dataclass(frozen=True)
class ConfidenceInterval:
    sem: float
    lower: float
    upper: float
    alpha: float


def effective_sd(sample_size: int, observed_sd: Optional[float]) -> float:
    """Score SD to use for the SEM, widened for small reliability samples."""
    if sample_size >= LARGE_SAMPLE_SIZE:
        return observed_sd if observed_sd is not None and observed_sd > 0 else DEFAULT_SD
    if sample_size > SMALL_SAMPLE_SIZE:
        return DEFAULT_SD * math.sqrt(LARGE_SAMPLE_SIZE / sample_size)
    if sample_size > 0:
        logger.warning(
            f"Reliability sample of {sample_size} is too small for a stable SD; "
            f"using default SD {DEFAULT_SD}"
        )
    return DEFAULT_SD


def calculate_interval(
    percentage: float, reliability: CompetencyReliability
) -> Optional[ConfidenceInterval]:
    """
    Calculate the 95% confidence interval for one competency percentage.

    Returns:
        None when alpha is missing or outside (0, 1].

    Example:
        >>> calculate_interval(60.0, CompetencyReliability(cid, 0.84, 50, 10.0))
        ConfidenceInterval(sem=4.0, lower=52.16, upper=67.84, alpha=0.84)
    """
    alpha = reliability.cronbach_alpha
    if alpha is None or alpha <= 0 or alpha > 1:
        return None

    sd = effective_sd(reliability.sample_size, reliability.score_sd)
    sem = sd * math.sqrt(1 - alpha)
    margin = Z_95 * sem
    return ConfidenceInterval(
        sem=round(sem, 2),
        lower=round(clamp(percentage - margin, 0.0, 100.0), 2),
        upper=round(clamp(percentage + margin, 0.0, 100.0), 2),
        alpha=round(alpha, 4),
    )


class ConfidenceIntervalCalculator:
    """Annotates competency scores with SEM and CI bounds from reliability data."""

    def __init__(self, reliability: ReliabilityProvider):
        self.reliability = reliability

    def enrich(self, scores: Iterable[CompetencyScore]) -> int:
        """
        Returns:
            Number of competencies that received an interval.
        """
        scores = list(scores)
        reliability_map = self.reliability.get_reliability(s.competency_id for s in scores)
        enriched = 0
        for score in scores:
            reliability = reliability_map.get(score.competency_id)
            if reliability is None:
                continue
            interval = calculate_interval(score.percentage, reliability)
            if interval is None:
                logger.debug(
                    f"Skipping confidence interval for {score.competency_name}: "
                    f"alpha={reliability.cronbach_alpha}"
                )
                continue
            score.sem = interval.sem
            score.ci_lower = interval.lower
            score.ci_upper = interval.upper
            score.cronbach_alpha = interval.alpha
            enriched += 1
        return enriched
