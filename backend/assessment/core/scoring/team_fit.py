"""
TeamFit (gap analysis) scoring.

Each competency is classified against the existing team's saturation (the
share of members already strong in it), or against the candidate's own
normalized score when the team has no data for it:

    SATURATION  value >= saturation threshold (blueprint override or 0.75)
    DIVERSITY   value >= diversity threshold (0.5)
    GAP         otherwise

The overall multiplier is a continuous sigmoid of the diversity/saturation
balance, mapped between the saturation penalty and the diversity bonus::

    balance = diversity_ratio - saturation_ratio            # in [-1, 1]
    s       = 1 / (1 + exp(-k * balance))
    m       = penalty + (bonus - penalty) * s
    m      += (compatibility - 0.5) * personality_weight     # when known
    m       = clamp(m, floor, ceiling)

Personality compatibility is ``1 - ||c - t|| / ||max||`` over the Big Five
traits both profiles share, profiles on a 0-100 scale.

Per-competency weights compound ESCO boost, Big Five boost, gap relevance
``1 + (1 - team_saturation)`` and role weight, capped at
``max_weight_multiplier``. The same capped weight is used in the numerator
and the denominator of the weighted average.
"""

import logging
import math
import uuid
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import numpy as np

from libs.domain_types import AssessmentGoal, BigFiveTrait

from assessment.core.blueprint import TeamFitBlueprint
from assessment.core.config import (
    ScoringConfigurationStore,
    TeamFitThresholds,
    WeightsConfig,
)
from assessment.core.precision import clamp, meets_threshold, round4
from assessment.core.scoring._types import (
    CompetencyScore,
    ScoringResult,
    TeamContribution,
    TeamFitMetrics,
)
from assessment.core.scoring.aggregation import AggregationOutcome, AggregationPipeline
from assessment.core.scoring.base import AggregatingStrategy
from assessment.models.domain import Answer, TeamProfile
from assessment.providers.base import TeamProfileProvider

logger = logging.getLogger(__name__)

PERSONALITY_SCALE_MAX = 100.0


def classify_contribution(
    value: float, saturation_threshold: float, diversity_threshold: float
) -> TeamContribution:
    if meets_threshold(value, saturation_threshold):
        return TeamContribution.SATURATION
    if meets_threshold(value, diversity_threshold):
        return TeamContribution.DIVERSITY
    return TeamContribution.GAP


def personality_compatibility(
    candidate: Dict[BigFiveTrait, float], team: Dict[BigFiveTrait, float]
) -> Optional[float]:
    """
    Normalized Euclidean similarity over shared traits, in [0, 1].

    Returns None when the profiles share no trait.
    """
    shared = [t for t in BigFiveTrait if t in candidate and t in team]
    if not shared:
        return None
    c = np.array([candidate[t] for t in shared], dtype=float)
    t = np.array([team[t] for t in shared], dtype=float)
    max_distance = float(np.linalg.norm(np.full(len(shared), PERSONALITY_SCALE_MAX)))
    distance = float(np.linalg.norm(c - t))
    return clamp(1.0 - distance / max_distance, 0.0, 1.0)


def team_fit_multiplier(
    diversity_ratio: float,
    saturation_ratio: float,
    compatibility: Optional[float],
    thresholds: TeamFitThresholds,
) -> float:
    balance = diversity_ratio - saturation_ratio
    sigmoid = 1.0 / (1.0 + math.exp(-thresholds.sigmoid_steepness * balance))
    multiplier = thresholds.saturation_penalty + (
        thresholds.diversity_bonus - thresholds.saturation_penalty
    ) * sigmoid
    if compatibility is not None:
        multiplier += (compatibility - 0.5) * thresholds.personality_weight
    return clamp(multiplier, thresholds.multiplier_floor, thresholds.multiplier_ceiling)


def adjusted_pass_threshold(
    team_size: Optional[int], gap_ratio: float, thresholds: TeamFitThresholds
) -> float:
    """Pass threshold (0-1) relaxed for small teams and teams with many gaps."""
    threshold = thresholds.pass_threshold
    if team_size is not None and team_size < thresholds.small_team_threshold:
        threshold -= thresholds.small_team_adjustment
    if gap_ratio > thresholds.severe_gap_ratio:
        threshold -= thresholds.severe_gap_adjustment
    return max(threshold, thresholds.min_pass_threshold)


def competency_weight(
    score: CompetencyScore,
    team_saturation: Optional[float],
    role_weight: float,
    weights: WeightsConfig,
) -> float:
    weight = weights.esco_boost if score.esco_uri else 1.0
    if score.big_five_category is not None:
        weight *= weights.big_five_boost
    # Unknown saturation contributes no gap relevance
    if team_saturation is not None:
        weight *= 1.0 + (1.0 - clamp(team_saturation, 0.0, 1.0))
    weight *= role_weight
    return min(weight, weights.max_weight_multiplier)


def big_five_profile(scores: Sequence[CompetencyScore]) -> Dict[BigFiveTrait, float]:
    """Mean competency percentage per Big Five trait over tagged competencies."""
    grouped: Dict[BigFiveTrait, List[float]] = defaultdict(list)
    for score in scores:
        if score.big_five_category is not None:
            grouped[score.big_five_category].append(score.percentage)
    return {trait: round4(math.fsum(v) / len(v)) for trait, v in grouped.items()}


class TeamFitScoringStrategy(AggregatingStrategy):
    goal = AssessmentGoal.TEAM_FIT

    def __init__(
        self,
        pipeline: AggregationPipeline,
        config_store: ScoringConfigurationStore,
        teams: TeamProfileProvider,
    ):
        super().__init__(pipeline, config_store)
        self.teams = teams

    def calculate(
        self,
        session_id: uuid.UUID,
        answers: Sequence[Answer],
        blueprint: TeamFitBlueprint,
        outcome: Optional[AggregationOutcome] = None,
    ) -> ScoringResult:
        config = self._config()
        thresholds = config.team_fit
        logger.info(f"Calculating team fit score for session {session_id} (team: {blueprint.team_id})")

        _, scores = self._aggregate(
            answers, thresholds.min_questions_per_competency, outcome
        )
        team = self._load_team(blueprint.team_id)

        saturation_threshold = (
            blueprint.saturation_threshold
            if 0.0 < blueprint.saturation_threshold <= 1.0
            else thresholds.saturation_threshold
        )

        weights: List[float] = []
        for score in scores:
            team_saturation = (
                team.competency_saturation.get(score.competency_id) if team is not None else None
            )
            value = team_saturation if team_saturation is not None else score.percentage / 100.0
            score.team_contribution = classify_contribution(
                value, saturation_threshold, thresholds.diversity_threshold
            )
            role_weight = blueprint.role_competency_weights.get(score.competency_id, 1.0)
            weight = competency_weight(score, team_saturation, role_weight, config.weights)
            score.weight_applied = round4(weight)
            weights.append(weight)

        count = len(scores)
        diversity_count = sum(1 for s in scores if s.team_contribution == TeamContribution.DIVERSITY)
        saturation_count = sum(
            1 for s in scores if s.team_contribution == TeamContribution.SATURATION
        )
        gap_count = count - diversity_count - saturation_count
        diversity_ratio = diversity_count / count if count else 0.0
        saturation_ratio = saturation_count / count if count else 0.0
        gap_ratio = gap_count / count if count else 0.0

        candidate_profile = big_five_profile(scores)
        compatibility = None
        if team is not None and team.personality_profile and candidate_profile:
            compatibility = personality_compatibility(candidate_profile, team.personality_profile)

        multiplier = team_fit_multiplier(diversity_ratio, saturation_ratio, compatibility, thresholds)

        total_weight = math.fsum(weights)
        if total_weight > 0:
            weighted_percentage = (
                math.fsum(w * s.percentage for w, s in zip(weights, scores)) / total_weight
            )
            overall_score = math.fsum(w * s.score for w, s in zip(weights, scores)) / total_weight
        else:
            weighted_percentage = 0.0
            overall_score = 0.0
        overall_percentage = clamp(weighted_percentage * multiplier, 0.0, 100.0)

        team_size = team.member_count if team is not None else None
        pass_threshold = adjusted_pass_threshold(team_size, gap_ratio, thresholds)
        passed = meets_threshold(overall_percentage, pass_threshold * 100.0) and meets_threshold(
            diversity_ratio, thresholds.min_diversity_ratio
        )

        metrics = TeamFitMetrics(
            diversity_ratio=round4(diversity_ratio),
            saturation_ratio=round4(saturation_ratio),
            team_fit_multiplier=round4(multiplier),
            diversity_count=diversity_count,
            saturation_count=saturation_count,
            gap_count=gap_count,
            personality_compatibility=round4(compatibility) if compatibility is not None else None,
            adjusted_pass_threshold=round4(pass_threshold),
            team_size=team_size,
            team_data_available=team is not None,
        )

        extended: Dict[str, object] = {
            "saturation_threshold": saturation_threshold,
            "target_role": blueprint.target_role,
        }
        if team is None:
            extended["team_note"] = (
                "No team profile available; competencies classified against the "
                "candidate's own scores"
            )

        logger.info(
            f"Team fit assessment for session {session_id}: "
            f"{'ADDS VALUE' if passed else 'LIMITED FIT'} (score: {overall_percentage:.2f}%, "
            f"diversity: {diversity_ratio * 100:.2f}%, multiplier: {multiplier:.4f})"
        )

        return ScoringResult(
            session_id=session_id,
            goal=self.goal,
            overall_score=round4(overall_score),
            overall_percentage=round4(overall_percentage),
            competency_scores=scores,
            passed=passed,
            extended_metrics=extended,
            team_fit_metrics=metrics,
            big_five_profile=candidate_profile or None,
        )

    def _load_team(self, team_id: Optional[uuid.UUID]) -> Optional[TeamProfile]:
        if team_id is None:
            return None
        team = self.teams.get_team_profile(team_id)
        if team is None:
            logger.warning(
                f"No team profile for team {team_id}; falling back to self-referential scoring"
            )
        return team
