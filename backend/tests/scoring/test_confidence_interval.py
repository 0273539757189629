"""
Tests for SEM and confidence interval calculation.
"""
import math
import uuid
from unittest.mock import patch

import pytest

from assessment.core.scoring import (
    CompetencyScore,
    ConfidenceIntervalCalculator,
    calculate_interval,
)
from assessment.core.scoring.confidence_interval import DEFAULT_SD, effective_sd
from assessment.models.domain import CompetencyReliability


def _reliability(alpha, sample_size=50, score_sd=10.0, competency_id=None):
    return CompetencyReliability(
        competency_id=competency_id or uuid.uuid4(),
        cronbach_alpha=alpha,
        sample_size=sample_size,
        score_sd=score_sd,
    )


class TestEffectiveSd:
    def test_large_sample_uses_observed(self):
        assert effective_sd(30, 12.0) == 12.0

    def test_large_sample_without_observed_sd(self):
        assert effective_sd(100, None) == DEFAULT_SD

    def test_small_sample_widens(self):
        assert effective_sd(10, 12.0) == pytest.approx(15.0 * math.sqrt(3))

    def test_tiny_sample_warns(self):
        with patch("assessment.core.scoring.confidence_interval.logger") as mock_logger:
            assert effective_sd(5, 12.0) == DEFAULT_SD
        mock_logger.warning.assert_called_once()

    def test_no_sample_is_silent(self):
        with patch("assessment.core.scoring.confidence_interval.logger") as mock_logger:
            assert effective_sd(0, None) == DEFAULT_SD
        mock_logger.warning.assert_not_called()


class TestCalculateInterval:
    def test_documented_example(self):
        interval = calculate_interval(60.0, _reliability(0.84))

        assert interval.sem == 4.0
        assert interval.lower == 52.16
        assert interval.upper == 67.84
        assert interval.alpha == 0.84

    def test_clamped_to_percentage_range(self):
        interval = calculate_interval(98.0, _reliability(0.5))

        assert interval.upper == 100.0
        assert interval.lower < 98.0

    @pytest.mark.parametrize("alpha", [None, 0.0, -0.2, 1.2])
    def test_invalid_alpha_gives_no_interval(self, alpha):
        assert calculate_interval(50.0, _reliability(alpha)) is None

    def test_perfect_reliability_collapses(self):
        interval = calculate_interval(42.0, _reliability(1.0))
        assert interval.sem == 0.0
        assert interval.lower == interval.upper == 42.0

    def test_higher_alpha_narrows_interval(self):
        wide = calculate_interval(50.0, _reliability(0.7))
        narrow = calculate_interval(50.0, _reliability(0.9))
        assert (narrow.upper - narrow.lower) < (wide.upper - wide.lower)


class TestConfidenceIntervalCalculator:
    def test_enriches_scores_with_reliability(self, catalog):
        with_data = CompetencyScore(
            competency_id=uuid.uuid4(), competency_name="Known", score=0.0,
            max_score=0.0, percentage=60.0, questions_answered=3,
        )
        without_data = CompetencyScore(
            competency_id=uuid.uuid4(), competency_name="Unknown", score=0.0,
            max_score=0.0, percentage=60.0, questions_answered=3,
        )
        catalog.add_reliability(_reliability(0.84, competency_id=with_data.competency_id))

        enriched = ConfidenceIntervalCalculator(catalog).enrich([with_data, without_data])

        assert enriched == 1
        assert with_data.sem == 4.0
        assert (with_data.ci_lower, with_data.ci_upper) == (52.16, 67.84)
        assert with_data.cronbach_alpha == 0.84
        assert without_data.sem is None
