"""Scoring pipeline: normalization, aggregation, goal strategies and enrichment."""

from ._types import (
    CompetencyBand,
    CompetencyScore,
    ConfidenceLevel,
    IndicatorScore,
    ScoringResult,
    TeamContribution,
    TeamFitMetrics,
)
from .aggregation import (
    AggregationOutcome,
    AggregationPipeline,
    CompetencyAggregator,
    IndicatorAggregator,
    apply_evidence_sufficiency,
)
from .base import ScoringStrategy
from .confidence_interval import ConfidenceIntervalCalculator, calculate_interval
from .consistency import ConsistencyResult, ResponseConsistencyAnalyzer
from .interpretation import ProficiencyLevel, ScoreInterpreter
from .job_fit import JobFitScoringStrategy
from .normalizer import AnswerNormalizer
from .overview import OverviewScoringStrategy
from .service import ScoringService
from .team_fit import TeamFitScoringStrategy

__all__ = [
    "CompetencyBand",
    "CompetencyScore",
    "ConfidenceLevel",
    "IndicatorScore",
    "ScoringResult",
    "TeamContribution",
    "TeamFitMetrics",
    "AggregationOutcome",
    "AggregationPipeline",
    "CompetencyAggregator",
    "IndicatorAggregator",
    "apply_evidence_sufficiency",
    "ScoringStrategy",
    "ConfidenceIntervalCalculator",
    "calculate_interval",
    "ConsistencyResult",
    "ResponseConsistencyAnalyzer",
    "ProficiencyLevel",
    "ScoreInterpreter",
    "JobFitScoringStrategy",
    "AnswerNormalizer",
    "OverviewScoringStrategy",
    "ScoringService",
    "TeamFitScoringStrategy",
]
