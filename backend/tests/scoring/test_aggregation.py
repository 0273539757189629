"""
Tests for the two-level aggregation pipeline.
"""
import uuid
from unittest.mock import patch

import pytest

from assessment.core.scoring import (
    AggregationPipeline,
    AnswerNormalizer,
    CompetencyScore,
    apply_evidence_sufficiency,
)
from assessment.models.domain import Answer


def _pipeline(catalog):
    return AggregationPipeline(AnswerNormalizer(), catalog, catalog, catalog)


@pytest.fixture
def weighted_competency(builder):
    competency = builder.competency("Decision Making")
    primary = builder.indicator(competency, title="Weighs options", weight=2.0)
    secondary = builder.indicator(competency, title="Commits", weight=1.0)
    return {
        "competency": competency,
        "primary": (primary, builder.questions(primary, 2)),
        "secondary": (secondary, builder.questions(secondary, 2)),
    }


def _answers(weighted_competency):
    (_, (p1, p2)) = weighted_competency["primary"]
    (_, (s1, _)) = weighted_competency["secondary"]
    return [
        Answer(question_id=p1.id, likert_value=5),
        Answer(question_id=p2.id, likert_value=3),
        Answer(question_id=s1.id, likert_value=1),
    ]


class TestIndicatorLevel:
    def test_indicator_percentages(self, catalog, weighted_competency):
        outcome = _pipeline(catalog).aggregate(_answers(weighted_competency))
        primary, _ = weighted_competency["primary"]
        secondary, _ = weighted_competency["secondary"]

        assert outcome.indicators[primary.id].percentage == pytest.approx(75.0)
        assert outcome.indicators[primary.id].question_count == 2
        assert outcome.indicators[secondary.id].percentage == pytest.approx(0.0)

    def test_normalized_scores_and_competency_map(self, catalog, weighted_competency):
        answers = _answers(weighted_competency)
        outcome = _pipeline(catalog).aggregate(answers)
        competency_id = weighted_competency["competency"].id

        assert outcome.normalized_scores[answers[0].question_id] == pytest.approx(1.0)
        assert outcome.normalized_scores[answers[1].question_id] == pytest.approx(0.5)
        assert set(outcome.question_competency.values()) == {competency_id}
        assert len(outcome.question_competency) == 3


class TestCompetencyLevel:
    """Weighted roll-up of indicator percentages."""

    def test_weighted_mean_of_indicators(self, catalog, weighted_competency):
        outcome = _pipeline(catalog).aggregate(_answers(weighted_competency))
        [score] = outcome.competency_scores()

        # (2 * 75 + 1 * 0) / 3
        assert score.percentage == pytest.approx(50.0)
        assert score.score == pytest.approx(3.0)
        assert score.max_score == pytest.approx(5.0)
        assert score.questions_answered == 3

    def test_indicator_breakdown_heaviest_first(self, catalog, weighted_competency):
        [score] = _pipeline(catalog).aggregate(_answers(weighted_competency)).competency_scores()

        assert [i.indicator_title for i in score.indicator_scores] == ["Weighs options", "Commits"]
        assert score.indicator_scores[0].weight == 2.0

    def test_roll_up_matches_direct_weighted_average(self, builder, catalog):
        competency = builder.competency("Symmetry")
        indicators = [
            builder.indicator(competency, title=f"I{n}", weight=weight)
            for n, weight in enumerate((0.5, 1.5, 3.0))
        ]
        likert = {0: [5, 2], 1: [4, 4, 1], 2: [3]}
        answers, weighted, total_weight = [], 0.0, 0.0
        for index, values in likert.items():
            indicator = indicators[index]
            for value in values:
                question = builder.question(indicator)
                answers.append(Answer(question_id=question.id, likert_value=value))
                # Each answer carries w_i / n_i of the weight
                share = indicator.weight / len(values)
                weighted += share * (value - 1) / 4 * 100
                total_weight += share

        [score] = _pipeline(catalog).aggregate(answers).competency_scores()

        assert score.percentage == pytest.approx(weighted / total_weight)

    def test_answer_order_does_not_matter(self, catalog, weighted_competency):
        answers = _answers(weighted_competency)
        forward = _pipeline(catalog).aggregate(answers).competency_scores()[0]
        backward = _pipeline(catalog).aggregate(list(reversed(answers))).competency_scores()[0]

        assert forward.percentage == backward.percentage
        assert forward.score == backward.score

    def test_competencies_ordered_by_name(self, builder, catalog):
        zeta = builder.competency_with_questions("Zeta", per_indicator=1)
        alpha = builder.competency_with_questions("Alpha", per_indicator=1)
        answers = [
            Answer(question_id=zeta["indicators"][0][1][0].id, likert_value=4),
            Answer(question_id=alpha["indicators"][0][1][0].id, likert_value=2),
        ]

        scores = _pipeline(catalog).aggregate(answers).competency_scores()

        assert [s.competency_name for s in scores] == ["Alpha", "Zeta"]

    def test_mappings_are_carried(self, builder, catalog):
        competency = builder.competency("Mapped", onet_code="2.A.2.a", esco_uri="http://esco/x")
        question = builder.question(builder.indicator(competency))

        [score] = _pipeline(catalog).aggregate(
            [Answer(question_id=question.id, likert_value=3)]
        ).competency_scores()

        assert score.onet_code == "2.A.2.a"
        assert score.esco_uri == "http://esco/x"


class TestFiltering:
    def test_skipped_and_unanswered_are_excluded(self, catalog, weighted_competency):
        (_, (p1, p2)) = weighted_competency["primary"]
        answers = [
            Answer(question_id=p1.id, likert_value=5),
            Answer(question_id=p2.id, likert_value=1, skipped=True),
            Answer(question_id=p2.id, likert_value=1, answered=False),
        ]

        [score] = _pipeline(catalog).aggregate(answers).competency_scores()

        assert score.questions_answered == 1
        assert score.percentage == pytest.approx(100.0)

    def test_unknown_question_is_skipped_with_warning(self, catalog, weighted_competency):
        answers = _answers(weighted_competency) + [
            Answer(question_id=uuid.uuid4(), likert_value=5)
        ]

        with patch("assessment.core.scoring.aggregation.logger") as mock_logger:
            outcome = _pipeline(catalog).aggregate(answers)

        assert len(outcome.normalized_scores) == 3
        mock_logger.warning.assert_called_once()

    def test_empty_answers(self, catalog):
        outcome = _pipeline(catalog).aggregate([])
        assert outcome.competency_scores() == []
        assert outcome.normalized_scores == {}


class TestEvidenceSufficiency:
    def _score(self, answered):
        return CompetencyScore(
            competency_id=uuid.uuid4(),
            competency_name="c",
            score=0.0,
            max_score=0.0,
            percentage=0.0,
            questions_answered=answered,
        )

    def test_flags_below_minimum(self):
        scores = [self._score(2), self._score(3), self._score(0)]

        flagged = apply_evidence_sufficiency(scores, 3)

        assert flagged == 2
        assert [s.insufficient_evidence for s in scores] == [True, False, True]
        assert "minimum 3 required" in scores[0].evidence_note
        assert scores[1].evidence_note is None
