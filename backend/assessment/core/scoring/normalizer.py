"""
Answer normalization.

Maps one raw answer onto a uniform [0, 1] score regardless of question type,
so every downstream aggregation works on comparable units:

    Likert / frequency scales   (clamp(v, 1, 5) - 1) / 4
    Situational judgment        pre-weighted score clamped to [0, 1]
    Multiple choice             correctness flag (1 correct, 0 incorrect)
    Capability / peer feedback  Likert value if present, else score
    Text-based responses        rater score clamped to [0, 1]

Skipped and unanswered items are filtered out before they get here. An
answer with no usable field normalizes to 0.0 and logs a warning: a missing
value is never turned into a fabricated nonzero score, and never raises.
"""

import logging
from typing import Optional

from libs.domain_types import QuestionType

from assessment.core.precision import clamp
from assessment.models.domain import Answer

logger = logging.getLogger(__name__)

LIKERT_MIN = 1
LIKERT_MAX = 5

_LIKERT_TYPES = frozenset(
    {QuestionType.LIKERT, QuestionType.LIKERT_SCALE, QuestionType.FREQUENCY_SCALE}
)
_SCENARIO_TYPES = frozenset({QuestionType.SJT, QuestionType.SITUATIONAL_JUDGMENT})
_CHOICE_TYPES = frozenset({QuestionType.MCQ, QuestionType.MULTIPLE_CHOICE})
_RATED_TYPES = frozenset(
    {QuestionType.CAPABILITY_ASSESSMENT, QuestionType.PEER_FEEDBACK}
)
_TEXT_TYPES = frozenset(
    {
        QuestionType.BEHAVIORAL_EXAMPLE,
        QuestionType.OPEN_TEXT,
        QuestionType.SELF_REFLECTION,
    }
)


def normalize_likert(value: float) -> float:
    """Map a 1-5 Likert value onto [0, 1]; out-of-range values are clamped."""
    clamped = clamp(value, LIKERT_MIN, LIKERT_MAX)
    return (clamped - LIKERT_MIN) / (LIKERT_MAX - LIKERT_MIN)


def _clamped_score(answer: Answer) -> Optional[float]:
    if answer.score is None:
        return None
    return clamp(answer.score, 0.0, 1.0)


class AnswerNormalizer:
    """Stateless normalizer shared by every scoring strategy."""

    def normalize(self, answer: Answer, question_type: Optional[QuestionType]) -> float:
        """
        Normalize one answer to [0, 1].

        Args:
            answer: The recorded answer.
            question_type: Type of the answered question; None when the
                question could not be resolved.

        Returns:
            A float in [0, 1]. 0.0 when the answer carries no usable data.
        """
        value = self._dispatch(answer, question_type)
        if value is None:
            logger.warning(
                f"Answer for question {answer.question_id} ({question_type}) has no "
                "usable response data; normalizing to 0.0"
            )
            return 0.0
        return clamp(value, 0.0, 1.0)

    def _dispatch(
        self, answer: Answer, question_type: Optional[QuestionType]
    ) -> Optional[float]:
        if question_type in _LIKERT_TYPES:
            if answer.likert_value is not None:
                return normalize_likert(answer.likert_value)
            return _clamped_score(answer)

        if question_type in _SCENARIO_TYPES or question_type in _CHOICE_TYPES:
            return _clamped_score(answer)

        if question_type in _RATED_TYPES:
            if answer.likert_value is not None:
                return normalize_likert(answer.likert_value)
            return _clamped_score(answer)

        if question_type in _TEXT_TYPES:
            return _clamped_score(answer)

        # Unknown type: trust a score if one was recorded
        if answer.score is not None:
            logger.debug(
                f"Unknown question type {question_type} for question "
                f"{answer.question_id}; using recorded score"
            )
        return _clamped_score(answer)
