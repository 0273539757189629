"""
Differential Item Functioning (DIF) analysis with the Mantel-Haenszel procedure.

DIF exists when respondents from two groups with the same overall ability
have different odds of answering an item correctly. Groups are supplied by
the caller as disjoint sets of session ids; the engine stores no
demographic data.

Procedure:
    1. Normalize every historical answer; an item counts as correct when
       its normalized score is >= 0.5.
    2. Stratify respondents by total score into at most five strata of
       roughly equal size. Respondents with tied totals always share a
       stratum; the last stratum absorbs the remainder.
    3. Per item and stratum (n >= 2) build the 2x2 table

                       correct  incorrect
            focal         A         B
            reference     C         D

       and accumulate AD/N, BC/N, A, E(A) and Var(A) under H0.
    4. alpha_MH = sum(AD/N) / sum(BC/N)     (denominator 0 -> 0.5;
                                             both 0 -> alpha = 1)
       MH D-DIF = -2.35 * ln(alpha_MH)       (alpha <= 0 -> ln 0.5)
       chi2_MH  = (max(|sum A - sum E(A)| - 0.5, 0))^2 / sum Var(A)
       p        = P(chi2(1) > chi2_MH)

ETS classification on |D-DIF|:
    A  negligible   < 1.0
    B  moderate     < 1.5
    C  large        >= 1.5

A positive D-DIF means the focal group has lower odds of success at matched
ability, i.e. the item favors the reference group.

Reference:
    Holland, P.W. & Thayer, D.T. (1988). Differential Item Functioning and
    the Mantel-Haenszel Procedure. In Test Validity, pp. 129-145.
"""

import logging
import math
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence

from scipy import stats

from assessment.core.exceptions import DifAnalysisError, InsufficientGroupSizeError
from assessment.core.precision import round4
from assessment.core.scoring.normalizer import AnswerNormalizer
from assessment.models.domain import HistoricalResponse
from assessment.providers.base import (
    AnswerHistoryProvider,
    CompetencyRepository,
    IndicatorRepository,
    QuestionRepository,
)

logger = logging.getLogger(__name__)

NUM_STRATA = 5
MIN_TOTAL_RESPONDENTS = 100
MIN_GROUP_SIZE = 20
MIN_STRATUM_SIZE = 2
CORRECT_THRESHOLD = 0.5
ETS_DELTA_CONSTANT = -2.35
ETS_A_B_BOUNDARY = 1.0
ETS_B_C_BOUNDARY = 1.5
CONTINUITY_CORRECTION = 0.5
TIE_TOLERANCE = 1e-9

FAVORS_REFERENCE = "favors reference"
FAVORS_FOCAL = "favors focal"
NO_DIRECTION = "none"


class DifCategory(str, Enum):
    A_NEGLIGIBLE = "A_NEGLIGIBLE"
    B_MODERATE = "B_MODERATE"
    C_LARGE = "C_LARGE"


@dataclass(frozen=True)
class DifItemResult:
    question_id: uuid.UUID
    mh_odds_ratio: float
    mh_d_dif: float
    mh_chi_square: float
    p_value: float
    category: DifCategory
    direction: str
    strata_used: int


@dataclass(frozen=True)
class DifAnalysisResult:
    competency_id: Optional[uuid.UUID]
    focal_group_label: str
    reference_group_label: str
    focal_group_size: int
    reference_group_size: int
    total_items: int
    items_with_moderate_dif: int
    items_with_large_dif: int
    item_results: List[DifItemResult] = field(default_factory=list)


def classify_dif(d_dif: float) -> DifCategory:
    """
    ETS category for an MH D-DIF value.

    Examples:
        >>> classify_dif(0.8)
        <DifCategory.A_NEGLIGIBLE: 'A_NEGLIGIBLE'>
        >>> classify_dif(-1.2)
        <DifCategory.B_MODERATE: 'B_MODERATE'>
        >>> classify_dif(2.0)
        <DifCategory.C_LARGE: 'C_LARGE'>
    """
    magnitude = abs(d_dif)
    if magnitude < ETS_A_B_BOUNDARY:
        return DifCategory.A_NEGLIGIBLE
    if magnitude < ETS_B_C_BOUNDARY:
        return DifCategory.B_MODERATE
    return DifCategory.C_LARGE


def dif_direction(d_dif: float) -> str:
    if d_dif > 0:
        return FAVORS_REFERENCE
    if d_dif < 0:
        return FAVORS_FOCAL
    return NO_DIRECTION


@dataclass(frozen=True)
class _Respondent:
    session_id: uuid.UUID
    total_score: float
    is_focal: bool


@dataclass
class _ScoreMatrix:
    """session id -> question id -> normalized score, split by group."""

    focal: Dict[uuid.UUID, Dict[uuid.UUID, float]]
    reference: Dict[uuid.UUID, Dict[uuid.UUID, float]]
    question_ids: List[uuid.UUID]

    @property
    def total_respondents(self) -> int:
        return len(self.focal) + len(self.reference)

    def score(self, respondent: _Respondent, question_id: uuid.UUID) -> Optional[float]:
        group = self.focal if respondent.is_focal else self.reference
        return group.get(respondent.session_id, {}).get(question_id)


def stratify(
    respondents: Sequence[_Respondent], num_strata: int = NUM_STRATA
) -> List[List[_Respondent]]:
    """Equal-frequency strata by total score that never split tied scores."""
    if not respondents:
        return []
    ordered = sorted(respondents, key=lambda r: (r.total_score, str(r.session_id)))

    score_groups: List[List[_Respondent]] = [[ordered[0]]]
    for respondent in ordered[1:]:
        if abs(respondent.total_score - score_groups[-1][0].total_score) < TIE_TOLERANCE:
            score_groups[-1].append(respondent)
        else:
            score_groups.append([respondent])

    target_strata = min(num_strata, len(score_groups))
    target_size = len(ordered) // target_strata

    strata: List[List[_Respondent]] = []
    current: List[_Respondent] = []
    for group in score_groups:
        current.extend(group)
        if len(current) >= target_size and len(strata) < target_strata - 1:
            strata.append(current)
            current = []
    if current:
        strata.append(current)
    return strata


class DifAnalysisEngine:
    """Offline Mantel-Haenszel DIF over accumulated answer history."""

    def __init__(
        self,
        history: AnswerHistoryProvider,
        questions: QuestionRepository,
        indicators: IndicatorRepository,
        competencies: CompetencyRepository,
        normalizer: Optional[AnswerNormalizer] = None,
    ):
        self.history = history
        self.questions = questions
        self.indicators = indicators
        self.competencies = competencies
        self.normalizer = normalizer or AnswerNormalizer()

    def analyze_competency(
        self,
        competency_id: uuid.UUID,
        focal_session_ids: AbstractSet[uuid.UUID],
        reference_session_ids: AbstractSet[uuid.UUID],
        focal_label: str = "focal",
        reference_label: str = "reference",
    ) -> DifAnalysisResult:
        """Analyze every question of one competency."""
        if competency_id not in self.competencies.get_competencies([competency_id]):
            raise DifAnalysisError(
                f"Competency not found: {competency_id}",
                context="analyze_competency",
            )
        self._validate_groups(focal_session_ids, reference_session_ids)

        indicators = self.indicators.get_indicators_for_competencies([competency_id])
        indicator_ids = [i.id for i in indicators.get(competency_id, [])]
        grouped = self.questions.get_questions_for_indicators(indicator_ids)
        question_ids = sorted(
            (q.id for questions in grouped.values() for q in questions), key=str
        )
        return self._analyze(
            question_ids, focal_session_ids, reference_session_ids,
            focal_label, reference_label, competency_id=competency_id,
        )

    def analyze_items(
        self,
        question_ids: Iterable[uuid.UUID],
        focal_session_ids: AbstractSet[uuid.UUID],
        reference_session_ids: AbstractSet[uuid.UUID],
        focal_label: str = "focal",
        reference_label: str = "reference",
    ) -> DifAnalysisResult:
        """Analyze an explicit set of questions."""
        question_ids = list(dict.fromkeys(question_ids))
        if not question_ids:
            raise DifAnalysisError("Question IDs must not be empty", context="analyze_items")
        self._validate_groups(focal_session_ids, reference_session_ids)
        return self._analyze(
            question_ids, focal_session_ids, reference_session_ids, focal_label, reference_label
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _validate_groups(
        focal_session_ids: AbstractSet[uuid.UUID], reference_session_ids: AbstractSet[uuid.UUID]
    ) -> None:
        if not focal_session_ids:
            raise DifAnalysisError("Focal group session IDs must not be empty")
        if not reference_session_ids:
            raise DifAnalysisError("Reference group session IDs must not be empty")
        overlap = set(focal_session_ids) & set(reference_session_ids)
        if overlap:
            raise DifAnalysisError(
                "Focal and reference groups must not overlap. "
                f"Found {len(overlap)} shared session IDs."
            )

    def _analyze(
        self,
        question_ids: List[uuid.UUID],
        focal_session_ids: AbstractSet[uuid.UUID],
        reference_session_ids: AbstractSet[uuid.UUID],
        focal_label: str,
        reference_label: str,
        competency_id: Optional[uuid.UUID] = None,
    ) -> DifAnalysisResult:
        responses = self._load_responses(
            question_ids, set(focal_session_ids) | set(reference_session_ids)
        )
        matrix = self._build_matrix(responses, focal_session_ids, reference_session_ids)
        self._validate_sufficient_data(matrix)

        respondents = [
            _Respondent(session_id, math.fsum(scores.values()), True)
            for session_id, scores in matrix.focal.items()
        ] + [
            _Respondent(session_id, math.fsum(scores.values()), False)
            for session_id, scores in matrix.reference.items()
        ]
        strata = stratify(respondents)
        logger.debug(
            f"DIF analysis: {matrix.total_respondents} respondents in {len(strata)} strata, "
            f"{len(matrix.question_ids)} items"
        )

        item_results = [self._analyze_item(q, strata, matrix) for q in matrix.question_ids]
        moderate = sum(1 for r in item_results if r.category == DifCategory.B_MODERATE)
        large = sum(1 for r in item_results if r.category == DifCategory.C_LARGE)
        if large:
            logger.warning(
                f"DIF analysis found {large} items with LARGE DIF (Category C) between "
                f"'{focal_label}' and '{reference_label}' groups"
            )

        return DifAnalysisResult(
            competency_id=competency_id,
            focal_group_label=focal_label,
            reference_group_label=reference_label,
            focal_group_size=len(matrix.focal),
            reference_group_size=len(matrix.reference),
            total_items=len(item_results),
            items_with_moderate_dif=moderate,
            items_with_large_dif=large,
            item_results=item_results,
        )

    def _load_responses(
        self, question_ids: List[uuid.UUID], session_ids: AbstractSet[uuid.UUID]
    ) -> List[HistoricalResponse]:
        questions = self.questions.get_questions(question_ids)
        answers_by_session = self.history.get_session_answers(session_ids, question_ids)
        responses: List[HistoricalResponse] = []
        for session_id, answers in answers_by_session.items():
            for answer in answers:
                question = questions.get(answer.question_id)
                if question is None or not answer.is_scorable:
                    continue
                responses.append(
                    HistoricalResponse(
                        session_id=session_id,
                        question_id=answer.question_id,
                        normalized_score=self.normalizer.normalize(answer, question.question_type),
                    )
                )
        return responses

    @staticmethod
    def _build_matrix(
        responses: Iterable[HistoricalResponse],
        focal_session_ids: AbstractSet[uuid.UUID],
        reference_session_ids: AbstractSet[uuid.UUID],
    ) -> _ScoreMatrix:
        focal: Dict[uuid.UUID, Dict[uuid.UUID, float]] = defaultdict(dict)
        reference: Dict[uuid.UUID, Dict[uuid.UUID, float]] = defaultdict(dict)
        question_ids: Dict[uuid.UUID, None] = {}
        for response in responses:
            if response.session_id in focal_session_ids:
                focal[response.session_id][response.question_id] = response.normalized_score
            elif response.session_id in reference_session_ids:
                reference[response.session_id][response.question_id] = response.normalized_score
            else:
                continue
            question_ids[response.question_id] = None
        return _ScoreMatrix(
            focal=dict(focal),
            reference=dict(reference),
            question_ids=sorted(question_ids, key=str),
        )

    @staticmethod
    def _validate_sufficient_data(matrix: _ScoreMatrix) -> None:
        if matrix.total_respondents < MIN_TOTAL_RESPONDENTS:
            raise InsufficientGroupSizeError(
                f"Insufficient total respondents for DIF analysis: {matrix.total_respondents} "
                f"(minimum {MIN_TOTAL_RESPONDENTS} required)"
            )
        if len(matrix.focal) < MIN_GROUP_SIZE:
            raise InsufficientGroupSizeError(
                f"Insufficient focal group size for DIF analysis: {len(matrix.focal)} "
                f"(minimum {MIN_GROUP_SIZE} required)"
            )
        if len(matrix.reference) < MIN_GROUP_SIZE:
            raise InsufficientGroupSizeError(
                f"Insufficient reference group size for DIF analysis: {len(matrix.reference)} "
                f"(minimum {MIN_GROUP_SIZE} required)"
            )
        if not matrix.question_ids:
            raise InsufficientGroupSizeError("No items found for analysis")

    @staticmethod
    def _analyze_item(
        question_id: uuid.UUID, strata: Sequence[Sequence[_Respondent]], matrix: _ScoreMatrix
    ) -> DifItemResult:
        sum_ad_n = 0.0
        sum_bc_n = 0.0
        sum_a = 0.0
        sum_expected_a = 0.0
        sum_var_a = 0.0
        strata_used = 0

        for stratum in strata:
            a = b = c = d = 0
            for respondent in stratum:
                score = matrix.score(respondent, question_id)
                if score is None:
                    continue
                correct = score >= CORRECT_THRESHOLD
                if respondent.is_focal:
                    a, b = (a + 1, b) if correct else (a, b + 1)
                else:
                    c, d = (c + 1, d) if correct else (c, d + 1)

            n = a + b + c + d
            if n < MIN_STRATUM_SIZE:
                continue
            strata_used += 1

            sum_ad_n += a * d / n
            sum_bc_n += b * c / n
            sum_a += a
            n_focal, n_reference = a + b, c + d
            m1, m0 = a + c, b + d
            sum_expected_a += n_focal * m1 / n
            sum_var_a += n_focal * n_reference * m1 * m0 / (n * n * (n - 1))

        if sum_bc_n == 0.0:
            sum_bc_n = CONTINUITY_CORRECTION
            alpha = 1.0 if sum_ad_n == 0.0 else sum_ad_n / sum_bc_n
        else:
            alpha = sum_ad_n / sum_bc_n

        log_alpha = math.log(alpha) if alpha > 0 else math.log(CONTINUITY_CORRECTION)
        d_dif = ETS_DELTA_CONSTANT * log_alpha

        chi_square = 0.0
        p_value = 1.0
        if sum_var_a > 0:
            diff = max(abs(sum_a - sum_expected_a) - CONTINUITY_CORRECTION, 0.0)
            chi_square = diff * diff / sum_var_a
            p_value = float(stats.chi2.sf(chi_square, 1)) if chi_square > 0 else 1.0

        # Classify and orient on the reported (rounded) value
        d_dif = round4(d_dif)
        category = classify_dif(d_dif)
        direction = dif_direction(d_dif)
        if category != DifCategory.A_NEGLIGIBLE:
            logger.info(
                f"Item {question_id} classified as {category.value} DIF "
                f"(delta={d_dif:.3f}, direction='{direction}')"
            )

        return DifItemResult(
            question_id=question_id,
            mh_odds_ratio=round4(alpha),
            mh_d_dif=d_dif,
            mh_chi_square=round4(chi_square),
            p_value=round4(p_value),
            category=category,
            direction=direction,
            strata_used=strata_used,
        )
