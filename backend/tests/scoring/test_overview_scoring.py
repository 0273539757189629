"""
Tests for overview (baseline passport) scoring.
"""
import uuid

import pytest

from assessment.core.config import OverviewThresholds, ScoringConfiguration
from assessment.core.scoring import CompetencyBand, OverviewScoringStrategy
from assessment.core.scoring.overview import classify_band


class TestClassifyBand:
    """First match wins; every percentage lands in exactly one band."""

    @pytest.mark.parametrize(
        "percentage,overall,expected",
        [
            (90.0, 70.0, CompetencyBand.SIGNATURE_STRENGTH),
            (80.0, 75.0, CompetencyBand.STRENGTH),
            (75.0, 70.0, CompetencyBand.STRENGTH),
            (29.99, 50.0, CompetencyBand.CRITICAL_GAP),
            (30.0, 50.0, CompetencyBand.AVERAGE),
            (39.99, 50.0, CompetencyBand.AVERAGE),
            (40.0, 50.0, CompetencyBand.DEVELOPING),
            (74.99, 50.0, CompetencyBand.DEVELOPING),
        ],
    )
    def test_bands(self, percentage, overall, expected):
        assert classify_band(percentage, overall, OverviewThresholds()) == expected

    def test_signature_requires_strength_threshold(self):
        # Well above a low overall, but below the strength threshold
        assert classify_band(60.0, 20.0, OverviewThresholds()) == CompetencyBand.DEVELOPING

    def test_boundary_uses_rounded_comparison(self):
        # Float noise just under the threshold must not drop a score below its band
        assert classify_band(74.999999, 70.0, OverviewThresholds()) == CompetencyBand.STRENGTH

    def test_exhaustive_over_range(self):
        thresholds = OverviewThresholds()
        for step in range(0, 1001):
            band = classify_band(step / 10, 55.0, thresholds)
            assert isinstance(band, CompetencyBand)


class TestOverviewStrategy:
    @pytest.fixture
    def profile(self, answered):
        return {
            "strong": answered("Strong", [5, 5, 5]),
            "middling": answered("Middling", [3, 3, 3]),
            "thin": answered("Thin", [1]),
            "weak": answered("Weak", [2, 3, 2]),
        }

    def _answers(self, profile):
        return [a for _, answers in profile.values() for a in answers]

    def test_evidence_weighted_overall(self, pipeline, config_store, profile):
        result = OverviewScoringStrategy(pipeline, config_store).calculate(
            uuid.uuid4(), self._answers(profile)
        )

        # Weights 3, 3, 0.5 (halved single answer), 3 over 100, 50, 0, 33.33
        assert result.overall_percentage == pytest.approx(57.8947)
        assert result.overall_score == pytest.approx(1.7368)
        assert result.passed is None
        assert result.extended_metrics["insufficient_evidence_count"] == 1

    def test_bands_assigned(self, pipeline, config_store, profile):
        result = OverviewScoringStrategy(pipeline, config_store).calculate(
            uuid.uuid4(), self._answers(profile)
        )
        bands = {s.competency_name: s.band for s in result.competency_scores}

        assert bands == {
            "Strong": CompetencyBand.SIGNATURE_STRENGTH,
            "Middling": CompetencyBand.DEVELOPING,
            "Thin": CompetencyBand.CRITICAL_GAP,
            "Weak": CompetencyBand.AVERAGE,
        }
        assert result.extended_metrics["profile_pattern"]["CRITICAL_GAP"] == ["Thin"]
        assert sum(result.extended_metrics["band_counts"].values()) == 4

    def test_insufficient_evidence_is_downweighted(self, pipeline, config_store, profile):
        result = OverviewScoringStrategy(pipeline, config_store).calculate(
            uuid.uuid4(), self._answers(profile)
        )
        thin = next(s for s in result.competency_scores if s.competency_name == "Thin")

        assert thin.insufficient_evidence
        assert thin.weight_applied == 0.5

    def test_config_update_applies_on_next_run(self, pipeline, config_store, profile):
        strategy = OverviewScoringStrategy(pipeline, config_store)
        before = strategy.calculate(uuid.uuid4(), self._answers(profile))

        config_store.update(
            ScoringConfiguration(overview=OverviewThresholds(min_questions_per_competency=1))
        )
        after = strategy.calculate(uuid.uuid4(), self._answers(profile))

        # Thin now weighs 1: 550 / 10
        assert before.extended_metrics["insufficient_evidence_count"] == 1
        assert after.extended_metrics["insufficient_evidence_count"] == 0
        assert after.overall_percentage == pytest.approx(55.0)

    def test_no_answers(self, pipeline, config_store):
        result = OverviewScoringStrategy(pipeline, config_store).calculate(uuid.uuid4(), [])

        assert result.overall_percentage == 0.0
        assert result.competency_scores == []
