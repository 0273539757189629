"""
Tests for ResponseConsistencyAnalyzer.
"""
import uuid

import pytest

from assessment.core.scoring import ResponseConsistencyAnalyzer
from assessment.core.scoring.consistency import variance_factor
from assessment.core.scoring.normalizer import normalize_likert
from assessment.models.domain import Answer


def _session(likert_values, seconds=10, competency_id=None):
    """Answers on one competency plus the maps the analyzer expects."""
    competency_id = competency_id or uuid.uuid4()
    answers, normalized, mapping = [], {}, {}
    for value in likert_values:
        question_id = uuid.uuid4()
        answers.append(
            Answer(question_id=question_id, likert_value=value, time_spent_seconds=seconds)
        )
        normalized[question_id] = normalize_likert(value)
        mapping[question_id] = competency_id
    return answers, normalized, mapping


class TestVarianceFactor:
    @pytest.mark.parametrize(
        "variance,expected",
        [(0.0, 0.7), (0.2, 1.0), (0.05, 1.0), (0.4, 1.0), (0.025, 0.5), (0.7, 0.5), (1.0, 0.0)],
    )
    def test_mapping(self, variance, expected):
        assert variance_factor(variance) == pytest.approx(expected)


class TestAnalyzer:
    @pytest.fixture
    def analyzer(self):
        return ResponseConsistencyAnalyzer()

    def test_no_answers_is_fully_consistent(self, analyzer):
        result = analyzer.analyze([], {}, {})
        assert result.consistency_score == 1.0
        assert result.flags == []

    def test_engaged_candidate(self, analyzer):
        result = analyzer.analyze(*_session([1, 5, 1, 5]))

        assert result.consistency_score == 0.85
        assert result.flags == []
        assert result.straight_lining_rate == 0.5
        assert result.intra_competency_variance == pytest.approx(0.3333)

    def test_straight_lining(self, analyzer):
        result = analyzer.analyze(*_session([4, 4, 4, 4]))

        assert result.straight_lining_rate == 1.0
        assert any(f.startswith("Straight-lining detected: 100%") for f in result.flags)
        # Zero variance falls back to the neutral factor: 0.3 + 0 + 0.4 * 0.7
        assert result.consistency_score == 0.58

    def test_speed_anomaly(self, analyzer):
        fast, fast_scores, fast_map = _session([1, 5], seconds=1)
        slow, slow_scores, slow_map = _session([2, 4, 3], seconds=20)

        result = analyzer.analyze(
            fast + slow, {**fast_scores, **slow_scores}, {**fast_map, **slow_map}
        )

        assert result.speed_anomaly_rate == 0.4
        assert any(f.startswith("Speed anomaly: 2 of 5") for f in result.flags)

    def test_low_variance(self, analyzer):
        result = analyzer.analyze(*_session([3, 3, 3, 4]))

        assert 0.0 < result.intra_competency_variance < 0.02
        assert "Low response variance suggests possible disengagement" in result.flags

    def test_skipped_answers_are_ignored(self, analyzer):
        answers, normalized, mapping = _session([1, 5, 1, 5])
        answers.append(Answer(question_id=uuid.uuid4(), skipped=True, time_spent_seconds=0))

        result = analyzer.analyze(answers, normalized, mapping)

        assert result.speed_anomaly_rate == 0.0

    def test_to_dict(self, analyzer):
        payload = analyzer.analyze(*_session([1, 5, 1, 5])).to_dict()
        assert set(payload) == {
            "consistency_score",
            "flags",
            "speed_anomaly_rate",
            "straight_lining_rate",
            "intra_competency_variance",
        }
