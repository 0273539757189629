"""
Question selection engine.

Decides which questions enter a test. Every public method is read-only: it
never touches exposure counters (see ``exposure.ExposureTracker``) and draws
all randomness from the ``SelectionContext`` it is given.

Eligibility
    A candidate must be active and not RETIRED. A question without item
    statistics counts as PROBATION, which is eligible.

Ordering within an indicator
    With a preferred difficulty: (1) difficulty distance ascending,
    (2) discrimination index descending, (3) exposure count ascending.
    Without one: seeded shuffle, then a stable sort by exposure ascending.

Exhaustion fallback for a single indicator
    Tier 1  exact preferred difficulty within the indicator (all difficulties
            when no preference is given)
    Tier 2  remaining difficulties within the indicator, nearest first
    Tier 3  active sibling indicators of the same competency, recorded as an
            INDICATOR_EXHAUSTED_BORROWING warning for psychometric review

Distributions across indicators
    WATERFALL       round-robin, ``questions_per_round`` per indicator per round,
                    until the target is met or a full round adds nothing
    WEIGHTED        ``round_half_up(w / sum(w) * N)`` per indicator, min 1 for
                    a positive weight, capped by the remaining budget,
                    heaviest first
    PRIORITY_FIRST  fill each indicator to its quota in the given order
    Graduated context-neutral waterfall (Overview, >= 3 per indicator): one
    question from each difficulty band, then any-difficulty fallback, then a
    bounded second pass over the bands. Rounds repeat under the same stop
    rule as WATERFALL.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from libs.domain_types import DifficultyLevel, DistributionStrategy, ItemValidityStatus

from assessment.core.precision import round_half_up
from assessment.core.selection.context import SelectionContext, WarningCode
from assessment.models.domain import Indicator, ItemStatistics, Question
from assessment.providers.base import (
    CompetencyRepository,
    IndicatorRepository,
    ItemStatisticsProvider,
    QuestionRepository,
)

logger = logging.getLogger(__name__)

GRADUATED_DIFFICULTY_BANDS: Tuple[DifficultyLevel, ...] = (
    DifficultyLevel.FOUNDATIONAL,
    DifficultyLevel.INTERMEDIATE,
    DifficultyLevel.ADVANCED,
)

# Below this many questions per indicator the graduated path cannot give
# every band a question, so the single-difficulty waterfall is used instead.
GRADUATED_MIN_PER_INDICATOR = len(GRADUATED_DIFFICULTY_BANDS)


def _by_id(questions: Iterable[Question]) -> List[Question]:
    # Providers return rows in arbitrary order; seeded shuffles need a fixed start
    return sorted(questions, key=lambda q: str(q.id))


class _Inventory:
    """
    Lazily batch-loaded view of the question bank for one engine call.

    Each lookup hits the providers at most once per indicator or competency,
    no matter how many rounds the distribution runs.
    """

    def __init__(self, engine: "QuestionSelectionEngine"):
        self._engine = engine
        self._active: Dict[uuid.UUID, List[Question]] = {}
        self._statistics: Dict[uuid.UUID, ItemStatistics] = {}
        self._indicators: Dict[uuid.UUID, Indicator] = {}
        self._siblings: Dict[uuid.UUID, List[Indicator]] = {}

    def prefetch(self, indicator_ids: Iterable[uuid.UUID]) -> None:
        missing = [i for i in indicator_ids if i not in self._active]
        if not missing:
            return
        grouped = self._engine.questions.get_questions_for_indicators(missing)
        loaded: List[Question] = []
        for indicator_id in missing:
            active = _by_id(q for q in grouped.get(indicator_id, []) if q.is_active)
            self._active[indicator_id] = active
            loaded.extend(active)
        if loaded:
            self._statistics.update(
                self._engine.statistics.get_statistics(q.id for q in loaded)
            )

    def active(self, indicator_id: uuid.UUID) -> List[Question]:
        self.prefetch([indicator_id])
        return self._active[indicator_id]

    def eligible(self, indicator_id: uuid.UUID) -> List[Question]:
        return [q for q in self.active(indicator_id) if self.is_eligible(q)]

    def is_eligible(self, question: Question) -> bool:
        return question.is_active and self.status(question) != ItemValidityStatus.RETIRED

    def status(self, question: Question) -> ItemValidityStatus:
        stats = self._statistics.get(question.id)
        return stats.validity_status if stats is not None else ItemValidityStatus.PROBATION

    def discrimination(self, question: Question) -> float:
        stats = self._statistics.get(question.id)
        if stats is None or stats.discrimination_index is None:
            return 0.0
        return stats.discrimination_index

    def remember_indicators(self, indicators: Iterable[Indicator]) -> None:
        for indicator in indicators:
            self._indicators[indicator.id] = indicator

    def indicator(self, indicator_id: uuid.UUID) -> Optional[Indicator]:
        if indicator_id not in self._indicators:
            self._indicators.update(self._engine.indicators.get_indicators([indicator_id]))
        return self._indicators.get(indicator_id)

    def competency_indicators(self, competency_id: uuid.UUID) -> List[Indicator]:
        if competency_id not in self._siblings:
            grouped = self._engine.indicators.get_indicators_for_competencies([competency_id])
            indicators = sorted(grouped.get(competency_id, []), key=lambda i: str(i.id))
            self._siblings[competency_id] = indicators
            self.remember_indicators(indicators)
        return self._siblings[competency_id]


class QuestionSelectionEngine:
    """Selects question ids under validity, difficulty and distribution rules."""

    def __init__(
        self,
        questions: QuestionRepository,
        indicators: IndicatorRepository,
        competencies: CompetencyRepository,
        statistics: ItemStatisticsProvider,
        *,
        use_discrimination: bool = True,
    ):
        self.questions = questions
        self.indicators = indicators
        self.competencies = competencies
        self.statistics = statistics
        self.use_discrimination = use_discrimination

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _order(
        self,
        inventory: _Inventory,
        questions: Sequence[Question],
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
    ) -> List[Question]:
        if preferred_difficulty is not None:
            return sorted(
                questions,
                key=lambda q: (
                    q.difficulty.distance(preferred_difficulty),
                    -inventory.discrimination(q) if self.use_discrimination else 0.0,
                    q.exposure_count,
                ),
            )
        shuffled = list(questions)
        ctx.rng.shuffle(shuffled)
        # Stable: keeps the shuffled order among equally exposed items
        shuffled.sort(key=lambda q: q.exposure_count)
        return shuffled

    def _pool(
        self,
        inventory: _Inventory,
        indicator_id: uuid.UUID,
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
        *,
        context_neutral_only: bool = False,
        band: Optional[DifficultyLevel] = None,
    ) -> List[uuid.UUID]:
        eligible = inventory.eligible(indicator_id)
        if context_neutral_only:
            eligible = [q for q in eligible if q.context_neutral]
        if band is not None:
            eligible = [q for q in eligible if q.difficulty == band]
        return [q.id for q in self._order(inventory, eligible, preferred_difficulty, ctx)]

    # ------------------------------------------------------------------
    # Single indicator
    # ------------------------------------------------------------------

    def select_questions_for_indicator(
        self,
        indicator_id: uuid.UUID,
        max_questions: int,
        preferred_difficulty: Optional[DifficultyLevel] = None,
        exclude_ids: Iterable[uuid.UUID] = (),
        ctx: Optional[SelectionContext] = None,
    ) -> List[uuid.UUID]:
        """
        Select up to ``max_questions`` ids for one indicator.

        May return fewer when the indicator and its siblings are exhausted.
        """
        ctx = ctx or SelectionContext.unseeded()
        return self._select_for_indicator(
            _Inventory(self), indicator_id, max_questions, preferred_difficulty,
            set(exclude_ids), ctx,
        )

    def _select_for_indicator(
        self,
        inventory: _Inventory,
        indicator_id: uuid.UUID,
        max_questions: int,
        preferred_difficulty: Optional[DifficultyLevel],
        exclude_ids: Set[uuid.UUID],
        ctx: SelectionContext,
    ) -> List[uuid.UUID]:
        if max_questions <= 0:
            return []

        if not inventory.active(indicator_id):
            logger.warning(f"No active questions found for indicator {indicator_id}")
            ctx.warn(
                WarningCode.NO_ACTIVE_QUESTIONS_INDICATOR,
                f"No active questions found for indicator {indicator_id}",
                indicator_id=indicator_id,
            )
            return []

        eligible = [q for q in inventory.eligible(indicator_id) if q.id not in exclude_ids]
        if preferred_difficulty is not None:
            eligible = [q for q in eligible if q.difficulty == preferred_difficulty]
        ordered = self._order(inventory, eligible, preferred_difficulty, ctx)
        selected = [q.id for q in ordered[:max_questions]]

        if len(selected) < max_questions:
            selected = self._apply_exhaustion_fallback(
                inventory, indicator_id, max_questions, preferred_difficulty,
                exclude_ids, selected, ctx,
            )

        logger.debug(
            f"Selected {len(selected)} questions for indicator {indicator_id} "
            f"(requested: {max_questions})"
        )
        return selected

    def _apply_exhaustion_fallback(
        self,
        inventory: _Inventory,
        indicator_id: uuid.UUID,
        max_questions: int,
        preferred_difficulty: Optional[DifficultyLevel],
        exclude_ids: Set[uuid.UUID],
        already_selected: List[uuid.UUID],
        ctx: SelectionContext,
    ) -> List[uuid.UUID]:
        result = list(already_selected)
        excluded = set(exclude_ids) | set(result)
        remaining = max_questions - len(result)

        # Tier 2: other difficulties, same indicator
        if remaining > 0 and preferred_difficulty is not None:
            candidates = [q for q in inventory.eligible(indicator_id) if q.id not in excluded]
            ordered = self._order(inventory, candidates, preferred_difficulty, ctx)
            for question in ordered[:remaining]:
                result.append(question.id)
                excluded.add(question.id)
            remaining = max_questions - len(result)

        if remaining <= 0:
            return result

        # Tier 3: sibling indicators of the same competency
        indicator = inventory.indicator(indicator_id)
        if indicator is None:
            return result
        competency = self.competencies.get_competencies([indicator.competency_id]).get(
            indicator.competency_id
        )
        competency_name = competency.name if competency is not None else str(indicator.competency_id)
        logger.warning(
            f"Indicator {indicator_id} exhausted, selecting {remaining} questions from "
            f"sibling indicators of competency {competency_name} "
            "(flagged for psychometric review)"
        )

        siblings = [
            i for i in inventory.competency_indicators(indicator.competency_id)
            if i.id != indicator_id and i.is_active
        ]
        inventory.prefetch(s.id for s in siblings)
        borrowed = 0
        for sibling in siblings:
            if remaining <= 0:
                break
            candidates = [q for q in inventory.eligible(sibling.id) if q.id not in excluded]
            ctx.rng.shuffle(candidates)
            for question in candidates[:remaining]:
                result.append(question.id)
                excluded.add(question.id)
                borrowed += 1
            remaining = max_questions - len(result)

        if borrowed > 0:
            ctx.warn(
                WarningCode.INDICATOR_EXHAUSTED_BORROWING,
                f"Borrowing {borrowed} questions from sibling indicators of "
                f"{competency_name} (flagged for psychometric review)",
                indicator_id=indicator_id,
                count=borrowed,
                competency_name=competency_name,
            )
        return result

    # ------------------------------------------------------------------
    # Distributions across indicators
    # ------------------------------------------------------------------

    def select_questions_with_distribution(
        self,
        indicator_ids: Sequence[uuid.UUID],
        total_questions: int,
        questions_per_round: int,
        strategy: DistributionStrategy,
        preferred_difficulty: Optional[DifficultyLevel] = None,
        ctx: Optional[SelectionContext] = None,
    ) -> List[uuid.UUID]:
        ctx = ctx or SelectionContext.unseeded()
        inventory = _Inventory(self)
        return self._distribute(
            inventory, list(indicator_ids), total_questions, questions_per_round,
            strategy, preferred_difficulty, ctx,
        )

    def _distribute(
        self,
        inventory: _Inventory,
        indicator_ids: List[uuid.UUID],
        total_questions: int,
        questions_per_round: int,
        strategy: DistributionStrategy,
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
        indicator_weights: Optional[Mapping[uuid.UUID, float]] = None,
    ) -> List[uuid.UUID]:
        if not indicator_ids:
            logger.warning("No indicator IDs provided for distribution selection")
            ctx.warn(
                WarningCode.NO_INDICATORS_PROVIDED,
                "No indicators provided for distribution selection",
            )
            return []

        logger.info(
            f"Selecting {total_questions} questions across {len(indicator_ids)} indicators "
            f"(strategy: {strategy.value}, difficulty: {preferred_difficulty})"
        )
        inventory.prefetch(indicator_ids)

        match strategy:
            case DistributionStrategy.WATERFALL:
                return self._waterfall(
                    inventory, indicator_ids, total_questions, questions_per_round,
                    preferred_difficulty, ctx,
                )
            case DistributionStrategy.WEIGHTED:
                weights = indicator_weights or {i: 1.0 for i in indicator_ids}
                return self._weighted(
                    inventory, [(i, weights.get(i, 1.0)) for i in indicator_ids],
                    total_questions, preferred_difficulty, ctx,
                )
            case DistributionStrategy.PRIORITY_FIRST:
                return self._priority_first(
                    inventory, indicator_ids, total_questions, questions_per_round,
                    preferred_difficulty, ctx,
                )
        raise ValueError(f"Unsupported distribution strategy: {strategy}")

    def _waterfall(
        self,
        inventory: _Inventory,
        indicator_ids: List[uuid.UUID],
        total_questions: int,
        questions_per_round: int,
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
        *,
        context_neutral_only: bool = False,
    ) -> List[uuid.UUID]:
        pools = {
            i: self._pool(
                inventory, i, preferred_difficulty, ctx,
                context_neutral_only=context_neutral_only,
            )
            for i in indicator_ids
        }
        cursors = {i: 0 for i in indicator_ids}
        selected: List[uuid.UUID] = []
        used: Set[uuid.UUID] = set()
        per_round = max(1, questions_per_round)

        while len(selected) < total_questions:
            before_round = len(selected)
            for indicator_id in indicator_ids:
                if len(selected) >= total_questions:
                    break
                pool = pools[indicator_id]
                cursor = cursors[indicator_id]
                taken = 0
                while cursor < len(pool) and taken < per_round:
                    question_id = pool[cursor]
                    cursor += 1
                    if question_id in used:
                        continue
                    selected.append(question_id)
                    used.add(question_id)
                    taken += 1
                    if len(selected) >= total_questions:
                        break
                cursors[indicator_id] = cursor
            if len(selected) == before_round:
                break

        logger.debug(
            f"Waterfall distribution selected {len(selected)} questions across "
            f"{len(indicator_ids)} indicators"
        )
        return selected

    def _weighted(
        self,
        inventory: _Inventory,
        weighted_ids: List[Tuple[uuid.UUID, float]],
        total_questions: int,
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
    ) -> List[uuid.UUID]:
        if not weighted_ids:
            logger.warning("No indicator weights provided for weighted selection")
            ctx.warn(WarningCode.EMPTY_WEIGHTS, "No weights provided for weighted selection")
            return []

        total_weight = sum(w for _, w in weighted_ids)
        if total_weight <= 0:
            logger.warning(f"Total weight is zero or negative ({total_weight})")
            ctx.warn(
                WarningCode.NON_POSITIVE_TOTAL_WEIGHT,
                "Total weight is zero or negative; nothing selected",
                total_weight=total_weight,
            )
            return []

        allocation = allocate_weighted(weighted_ids, total_questions)

        selected: List[uuid.UUID] = []
        used: Set[uuid.UUID] = set()
        for indicator_id, quota in allocation:
            picked = self._select_for_indicator(
                inventory, indicator_id, quota, preferred_difficulty, used, ctx
            )
            selected.extend(picked)
            used.update(picked)

        logger.debug(
            f"Weighted distribution selected {len(selected)} questions across "
            f"{len(weighted_ids)} indicators"
        )
        return selected

    def _priority_first(
        self,
        inventory: _Inventory,
        indicator_ids: List[uuid.UUID],
        total_questions: int,
        questions_per_indicator: int,
        preferred_difficulty: Optional[DifficultyLevel],
        ctx: SelectionContext,
    ) -> List[uuid.UUID]:
        selected: List[uuid.UUID] = []
        used: Set[uuid.UUID] = set()
        for indicator_id in indicator_ids:
            if len(selected) >= total_questions:
                break
            quota = min(questions_per_indicator, total_questions - len(selected))
            picked = self._select_for_indicator(
                inventory, indicator_id, quota, preferred_difficulty, used, ctx
            )
            selected.extend(picked)
            used.update(picked)
        return selected

    def _graduated_waterfall(
        self,
        inventory: _Inventory,
        indicator_ids: List[uuid.UUID],
        total_questions: int,
        questions_per_round: int,
        ctx: SelectionContext,
    ) -> List[uuid.UUID]:
        band_pools: Dict[uuid.UUID, Dict[DifficultyLevel, List[uuid.UUID]]] = {}
        fallback_pools: Dict[uuid.UUID, List[uuid.UUID]] = {}
        for indicator_id in indicator_ids:
            band_pools[indicator_id] = {
                band: self._pool(
                    inventory, indicator_id, band, ctx, context_neutral_only=True, band=band
                )
                for band in GRADUATED_DIFFICULTY_BANDS
            }
            fallback_pools[indicator_id] = self._pool(
                inventory, indicator_id, None, ctx, context_neutral_only=True
            )

        selected: List[uuid.UUID] = []
        used: Set[uuid.UUID] = set()
        target = max(1, questions_per_round)

        def pick(pool: List[uuid.UUID]) -> Optional[uuid.UUID]:
            for question_id in pool:
                if question_id not in used:
                    return question_id
            return None

        def take(question_id: uuid.UUID) -> None:
            selected.append(question_id)
            used.add(question_id)

        round_number = 0
        while len(selected) < total_questions:
            before_round = len(selected)
            for indicator_id in indicator_ids:
                if len(selected) >= total_questions:
                    break
                bands = band_pools[indicator_id]
                taken = 0

                # Phase 1: one question per difficulty band
                for band in GRADUATED_DIFFICULTY_BANDS:
                    if taken >= target or len(selected) >= total_questions:
                        break
                    question_id = pick(bands[band])
                    if question_id is None:
                        logger.debug(
                            f"No {band.value} question for indicator {indicator_id} "
                            f"in round {round_number}, using fallback"
                        )
                        continue
                    take(question_id)
                    taken += 1

                # Phase 2: any difficulty
                while taken < target and len(selected) < total_questions:
                    question_id = pick(fallback_pools[indicator_id])
                    if question_id is None:
                        break
                    take(question_id)
                    taken += 1

                # Phase 3: cycle the bands again, bounded
                band_index = 0
                while taken < target and len(selected) < total_questions:
                    band = GRADUATED_DIFFICULTY_BANDS[band_index % len(GRADUATED_DIFFICULTY_BANDS)]
                    question_id = pick(bands[band])
                    if question_id is not None:
                        take(question_id)
                        taken += 1
                    band_index += 1
                    if band_index >= len(GRADUATED_DIFFICULTY_BANDS) * 2:
                        break

            if len(selected) == before_round:
                break
            round_number += 1

        logger.info(
            f"Graduated context-neutral waterfall selected {len(selected)} questions "
            f"across {len(indicator_ids)} indicators (target: {total_questions})"
        )
        return selected

    # ------------------------------------------------------------------
    # Competency level
    # ------------------------------------------------------------------

    def _active_indicators(
        self, inventory: _Inventory, competency_ids: Sequence[uuid.UUID]
    ) -> List[Indicator]:
        grouped = self.indicators.get_indicators_for_competencies(competency_ids)
        indicators: List[Indicator] = []
        for competency_id in competency_ids:
            indicators.extend(
                sorted(grouped.get(competency_id, []), key=lambda i: str(i.id))
            )
        inventory.remember_indicators(indicators)
        active = [i for i in indicators if i.is_active]
        # Stable sort keeps competency order among equal weights
        active.sort(key=lambda i: -i.weight)
        return active

    def _warn_no_indicators(
        self, competency_ids: Sequence[uuid.UUID], ctx: SelectionContext
    ) -> None:
        names = [c.name for c in self.competencies.get_competencies(competency_ids).values()]
        joined = ", ".join(sorted(names)) if names else f"{len(competency_ids)} competencies"
        logger.warning(f"No active behavioral indicators found for competencies: {joined}")
        ctx.warn(
            WarningCode.NO_ACTIVE_INDICATORS_COMPETENCIES,
            f"No active behavioral indicators found for: {joined}",
            count=len(competency_ids),
            competency_names=joined,
        )

    def select_questions_for_competencies(
        self,
        competency_ids: Sequence[uuid.UUID],
        questions_per_indicator: int,
        preferred_difficulty: Optional[DifficultyLevel] = None,
        shuffle: bool = False,
        context_neutral_only: bool = False,
        ctx: Optional[SelectionContext] = None,
        distribution: DistributionStrategy = DistributionStrategy.WATERFALL,
    ) -> List[uuid.UUID]:
        """
        Select ``questions_per_indicator`` per active indicator across competencies.

        Indicators of all competencies are pooled and ordered by weight
        descending. ``context_neutral_only`` switches to the context-neutral
        waterfall (graduated when ``questions_per_indicator >= 3``) and
        ignores ``distribution``.
        """
        ctx = ctx or SelectionContext.unseeded()
        competency_ids = list(dict.fromkeys(competency_ids))
        if not competency_ids:
            logger.warning("No competency IDs provided")
            return []

        logger.info(
            f"Selecting questions for {len(competency_ids)} competencies "
            f"({questions_per_indicator} per indicator, difficulty: {preferred_difficulty}, "
            f"context neutral: {context_neutral_only})"
        )

        inventory = _Inventory(self)
        indicators = self._active_indicators(inventory, competency_ids)
        if not indicators:
            self._warn_no_indicators(competency_ids, ctx)
            return []

        indicator_ids = [i.id for i in indicators]
        inventory.prefetch(indicator_ids)
        total_questions = len(indicator_ids) * questions_per_indicator

        if context_neutral_only:
            if questions_per_indicator >= GRADUATED_MIN_PER_INDICATOR:
                selected = self._graduated_waterfall(
                    inventory, indicator_ids, total_questions, questions_per_indicator, ctx
                )
            else:
                selected = self._waterfall(
                    inventory, indicator_ids, total_questions, questions_per_indicator,
                    preferred_difficulty, ctx, context_neutral_only=True,
                )
        else:
            selected = self._distribute(
                inventory, indicator_ids, total_questions, questions_per_indicator,
                distribution, preferred_difficulty, ctx,
                indicator_weights={i.id: i.weight for i in indicators},
            )

        if shuffle and selected:
            selected = list(selected)
            ctx.rng.shuffle(selected)
        return selected

    def select_questions_weighted(
        self,
        competency_weights: Mapping[uuid.UUID, float],
        total_questions: int,
        preferred_difficulty: Optional[DifficultyLevel] = None,
        shuffle: bool = False,
        ctx: Optional[SelectionContext] = None,
    ) -> List[uuid.UUID]:
        """
        Weighted selection across competencies.

        Each active indicator is weighted ``indicator.weight *
        competency_weights[competency]`` and the budget is allocated with the
        WEIGHTED distribution rules.
        """
        ctx = ctx or SelectionContext.unseeded()
        if not competency_weights:
            logger.warning("No competency weights provided for weighted selection")
            ctx.warn(WarningCode.EMPTY_WEIGHTS, "No competency weights provided")
            return []

        competency_ids = list(competency_weights)
        inventory = _Inventory(self)
        indicators = self._active_indicators(inventory, competency_ids)
        if not indicators:
            self._warn_no_indicators(competency_ids, ctx)
            return []

        weighted_ids = [
            (i.id, i.weight * competency_weights.get(i.competency_id, 1.0)) for i in indicators
        ]
        inventory.prefetch(i for i, _ in weighted_ids)
        selected = self._weighted(inventory, weighted_ids, total_questions, preferred_difficulty, ctx)

        if shuffle and selected:
            selected = list(selected)
            ctx.rng.shuffle(selected)
        return selected

    # ------------------------------------------------------------------
    # Inventory counts
    # ------------------------------------------------------------------

    def count_eligible_questions(self, indicator_id: uuid.UUID) -> int:
        return len(_Inventory(self).eligible(indicator_id))

    def count_eligible_for_competency(self, competency_id: uuid.UUID) -> int:
        inventory = _Inventory(self)
        indicators = [i for i in inventory.competency_indicators(competency_id) if i.is_active]
        inventory.prefetch(i.id for i in indicators)
        return sum(len(inventory.eligible(i.id)) for i in indicators)

    def count_eligible_by_competency(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, int]:
        """Eligible counts for several competencies with one batch of reads."""
        competency_ids = list(dict.fromkeys(competency_ids))
        inventory = _Inventory(self)
        grouped = self.indicators.get_indicators_for_competencies(competency_ids)
        active = {
            c: [i for i in grouped.get(c, []) if i.is_active] for c in competency_ids
        }
        inventory.prefetch(i.id for indicators in active.values() for i in indicators)
        return {
            competency_id: sum(len(inventory.eligible(i.id)) for i in indicators)
            for competency_id, indicators in active.items()
        }


def allocate_weighted(
    weighted_ids: Sequence[Tuple[uuid.UUID, float]], total_questions: int
) -> List[Tuple[uuid.UUID, int]]:
    """
    Split ``total_questions`` proportionally to weight, heaviest first.

    Every positive-weight entry gets ``max(1, round_half_up(w / sum(w) * N))``
    capped by what is left of the budget, so late entries can receive zero
    once it runs out. A zero-weight entry never gets the minimum of one.
    """
    total_weight = sum(w for _, w in weighted_ids)
    if total_weight <= 0:
        return []
    ordered = sorted(weighted_ids, key=lambda item: -item[1])
    allocation: List[Tuple[uuid.UUID, int]] = []
    allocated = 0
    for item_id, weight in ordered:
        share = round_half_up(weight / total_weight * total_questions)
        if weight > 0:
            share = max(1, share)
        share = min(share, total_questions - allocated)
        allocation.append((item_id, share))
        allocated += share
    return allocation
