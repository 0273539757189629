"""
Fixtures shared by the scoring tests.
"""
import pytest

from assessment.core.config import ScoringConfigurationStore
from assessment.core.scoring import AggregationPipeline, AnswerNormalizer
from assessment.models.domain import Answer


@pytest.fixture
def config_store():
    return ScoringConfigurationStore()


@pytest.fixture
def pipeline(catalog):
    return AggregationPipeline(AnswerNormalizer(), catalog, catalog, catalog)


@pytest.fixture
def answered(builder):
    """
    Factory: one competency with a single indicator, answered with the given
    Likert values (one question per value).

    Returns (competency, answers).
    """

    def _answered(name, likert_values, **competency_kwargs):
        competency = builder.competency(name, **competency_kwargs)
        indicator = builder.indicator(competency)
        answers = [
            Answer(question_id=builder.question(indicator).id, likert_value=value)
            for value in likert_values
        ]
        return competency, answers

    return _answered
