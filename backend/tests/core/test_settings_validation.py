"""
Tests for scoring configuration validation and the runtime configuration store.
"""
import pytest
from pydantic import ValidationError

from assessment.core.config import (
    JobFitThresholds,
    OverviewThresholds,
    ScoringConfiguration,
    ScoringConfigurationStore,
    Settings,
    TeamFitThresholds,
    WeightsConfig,
)


class TestDefaults:
    """Defaults must match the documented scoring constants."""

    def test_weights(self):
        weights = WeightsConfig()
        assert weights.onet_boost == 1.2
        assert weights.esco_boost == 1.15
        assert weights.big_five_boost == 1.1
        assert weights.max_weight_multiplier == 3.0

    def test_job_fit(self):
        thresholds = JobFitThresholds()
        assert thresholds.base_threshold == 0.5
        assert thresholds.strictness_max_adjustment == 0.3
        assert thresholds.min_questions_per_competency == 3

    def test_team_fit(self):
        thresholds = TeamFitThresholds()
        assert thresholds.saturation_threshold == 0.75
        assert thresholds.diversity_threshold == 0.5
        assert thresholds.pass_threshold == 0.6
        assert thresholds.min_diversity_ratio == 0.3
        assert (thresholds.multiplier_floor, thresholds.multiplier_ceiling) == (0.8, 1.2)

    def test_overview(self):
        thresholds = OverviewThresholds()
        assert thresholds.strength_threshold == 75.0
        assert thresholds.development_threshold == 40.0
        assert thresholds.critical_gap_threshold == 30.0
        assert thresholds.profile_band_width == 10.0


class TestValidators:
    """Cross-field validators reject inconsistent thresholds."""

    def test_medium_confidence_above_high_rejected(self):
        with pytest.raises(ValidationError, match="medium_confidence_threshold"):
            JobFitThresholds(high_confidence_threshold=0.5, medium_confidence_threshold=0.6)

    def test_threshold_range_exceeding_one_rejected(self):
        with pytest.raises(ValidationError, match="must not exceed 1.0"):
            JobFitThresholds(base_threshold=0.8, strictness_max_adjustment=0.3)

    def test_diversity_must_be_below_saturation(self):
        with pytest.raises(ValidationError, match="diversity_threshold"):
            TeamFitThresholds(saturation_threshold=0.5, diversity_threshold=0.5)

    def test_penalty_must_be_below_bonus(self):
        with pytest.raises(ValidationError, match="saturation_penalty"):
            TeamFitThresholds(saturation_penalty=1.2, diversity_bonus=1.1)

    def test_floor_must_be_below_ceiling(self):
        with pytest.raises(ValidationError, match="multiplier_floor"):
            TeamFitThresholds(multiplier_floor=1.2, multiplier_ceiling=1.2)

    def test_min_pass_cannot_exceed_pass(self):
        with pytest.raises(ValidationError, match="min_pass_threshold"):
            TeamFitThresholds(pass_threshold=0.4, min_pass_threshold=0.5)

    def test_overview_band_order(self):
        with pytest.raises(ValidationError, match="critical_gap <= development <= strength"):
            OverviewThresholds(critical_gap_threshold=50.0, development_threshold=40.0)

    def test_out_of_range_field(self):
        with pytest.raises(ValidationError):
            WeightsConfig(max_weight_multiplier=0.5)

    def test_configuration_is_frozen(self):
        config = ScoringConfiguration()
        with pytest.raises(ValidationError):
            config.weights = WeightsConfig(onet_boost=2.0)


class TestScoringConfigurationStore:
    def test_get_returns_initial(self):
        initial = ScoringConfiguration(weights=WeightsConfig(onet_boost=1.5))
        store = ScoringConfigurationStore(initial)
        assert store.get() is initial

    def test_defaults_when_no_initial(self):
        assert ScoringConfigurationStore().get() == ScoringConfiguration()

    def test_update_swaps_configuration(self):
        store = ScoringConfigurationStore()
        updated = ScoringConfiguration(team_fit=TeamFitThresholds(sigmoid_steepness=12.0))
        store.update(updated)
        assert store.get().team_fit.sigmoid_steepness == 12.0


class TestSettings:
    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            Settings(LOG_LEVEL="VERBOSE")

    def test_nested_scoring_override_from_env(self, monkeypatch):
        monkeypatch.setenv("SCORING__team_fit__sigmoid_steepness", "12")
        assert Settings().SCORING.team_fit.sigmoid_steepness == 12.0

    def test_psychometrics_toggle_from_env(self, monkeypatch):
        monkeypatch.setenv("PSYCHOMETRICS_ENABLED", "false")
        assert Settings().PSYCHOMETRICS_ENABLED is False
