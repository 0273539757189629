"""
Response consistency analysis.

Detects answer patterns that suggest the candidate was not engaging with the
test: answering too fast, straight-lining Likert items, and implausibly low
or high score variance within a competency. The result is advisory: it is
attached to ``extended_metrics["consistency"]`` and never changes a score.
"""

import logging
import uuid
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np

from assessment.models.domain import Answer

logger = logging.getLogger(__name__)

MIN_RESPONSE_TIME_SECONDS = 3
SPEED_ANOMALY_FLAG_RATE = 0.2
STRAIGHT_LINING_THRESHOLD = 0.70
MIN_ANSWERS_FOR_VARIANCE = 3

# Variance of normalized scores considered normal engagement
NORMAL_VARIANCE_LOW = 0.05
NORMAL_VARIANCE_HIGH = 0.4
LOW_VARIANCE_FLAG = 0.02
HIGH_VARIANCE_FLAG = 0.6
# Used when no competency had enough answers to measure variance
NEUTRAL_VARIANCE_FACTOR = 0.7

SPEED_WEIGHT = 0.3
STRAIGHT_LINING_WEIGHT = 0.3
VARIANCE_WEIGHT = 0.4


@dataclass(frozen=True)
class ConsistencyResult:
    consistency_score: float
    flags: List[str] = field(default_factory=list)
    speed_anomaly_rate: float = 0.0
    straight_lining_rate: float = 0.0
    intra_competency_variance: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def variance_factor(avg_variance: float) -> float:
    """Map average intra-competency variance onto [0, 1]; 1.0 is healthy."""
    if avg_variance == 0.0:
        return NEUTRAL_VARIANCE_FACTOR
    if NORMAL_VARIANCE_LOW <= avg_variance <= NORMAL_VARIANCE_HIGH:
        return 1.0
    if avg_variance < NORMAL_VARIANCE_LOW:
        return avg_variance / NORMAL_VARIANCE_LOW
    return max(
        0.0,
        1.0 - (avg_variance - NORMAL_VARIANCE_HIGH) / (1.0 - NORMAL_VARIANCE_HIGH),
    )


class ResponseConsistencyAnalyzer:
    def analyze(
        self,
        answers: Sequence[Answer],
        normalized_scores: Mapping[uuid.UUID, float],
        question_competency: Mapping[uuid.UUID, uuid.UUID],
    ) -> ConsistencyResult:
        """
        Analyze one session's answers.

        Args:
            answers: All answers of the session, skipped ones included.
            normalized_scores: Normalized score per answered question id.
            question_competency: Competency id per answered question id.
        """
        answered = [a for a in answers if a.is_scorable]
        if not answered:
            return ConsistencyResult(consistency_score=1.0)

        fast = sum(
            1
            for a in answered
            if a.time_spent_seconds is not None
            and a.time_spent_seconds < MIN_RESPONSE_TIME_SECONDS
        )
        speed_rate = fast / len(answered)

        likert_values = [a.likert_value for a in answered if a.likert_value is not None]
        if likert_values:
            modal_count = Counter(likert_values).most_common(1)[0][1]
            straight_rate = modal_count / len(likert_values)
        else:
            straight_rate = 0.0

        grouped: Dict[uuid.UUID, List[float]] = defaultdict(list)
        for answer in answered:
            competency_id = question_competency.get(answer.question_id)
            score = normalized_scores.get(answer.question_id)
            if competency_id is not None and score is not None:
                grouped[competency_id].append(score)
        variances = [
            float(np.var(values, ddof=1))
            for values in grouped.values()
            if len(values) >= MIN_ANSWERS_FOR_VARIANCE
        ]
        avg_variance = float(np.mean(variances)) if variances else 0.0

        score = round(
            SPEED_WEIGHT * (1.0 - speed_rate)
            + STRAIGHT_LINING_WEIGHT * (1.0 - straight_rate)
            + VARIANCE_WEIGHT * variance_factor(avg_variance),
            2,
        )

        flags: List[str] = []
        if speed_rate > SPEED_ANOMALY_FLAG_RATE:
            flags.append(
                f"Speed anomaly: {fast} of {len(answered)} answers were completed in "
                f"under {MIN_RESPONSE_TIME_SECONDS} seconds"
            )
        if straight_rate > STRAIGHT_LINING_THRESHOLD:
            flags.append(
                f"Straight-lining detected: {round(straight_rate * 100)}% of Likert "
                "responses used the same value"
            )
        if 0.0 < avg_variance < LOW_VARIANCE_FLAG:
            flags.append("Low response variance suggests possible disengagement")
        if avg_variance > HIGH_VARIANCE_FLAG:
            flags.append("High response variance suggests inconsistent engagement")

        logger.debug(
            f"Consistency analysis: score={score:.2f}, speed={speed_rate:.2f}, "
            f"straight_lining={straight_rate:.2f}, variance={avg_variance:.4f}, "
            f"flags={len(flags)}"
        )
        return ConsistencyResult(
            consistency_score=score,
            flags=flags,
            speed_anomaly_rate=round(speed_rate, 4),
            straight_lining_rate=round(straight_rate, 4),
            intra_competency_variance=round(avg_variance, 4),
        )
