"""
Tests for the dict-backed provider implementation.
"""
import threading
import uuid

from libs.domain_types import ItemValidityStatus

from assessment.models.domain import Answer, BenchmarkProfile, TeamProfile
from assessment.providers import (
    AnswerHistoryProvider,
    BenchmarkProvider,
    CompetencyRepository,
    ExposureStore,
    IndicatorRepository,
    ItemStatisticsProvider,
    QuestionRepository,
    ReliabilityProvider,
    TeamProfileProvider,
)


class TestProtocolConformance:
    def test_catalog_satisfies_every_provider(self, catalog):
        for protocol in (
            CompetencyRepository,
            IndicatorRepository,
            QuestionRepository,
            ItemStatisticsProvider,
            BenchmarkProvider,
            TeamProfileProvider,
            ReliabilityProvider,
            AnswerHistoryProvider,
            ExposureStore,
        ):
            assert isinstance(catalog, protocol), protocol.__name__


class TestLookups:
    def test_batch_lookups_skip_unknown_ids(self, builder, catalog):
        data = builder.competency_with_questions("Planning", per_indicator=2)
        competency = data["competency"]
        indicator, questions = data["indicators"][0]
        missing = uuid.uuid4()

        assert set(catalog.get_competencies([competency.id, missing])) == {competency.id}
        assert set(catalog.get_indicators([indicator.id, missing])) == {indicator.id}
        assert set(catalog.get_questions([q.id for q in questions] + [missing])) == {
            q.id for q in questions
        }

    def test_grouped_lookups_include_empty_groups(self, builder, catalog):
        data = builder.competency_with_questions("Planning", per_indicator=2)
        indicator, questions = data["indicators"][0]
        empty_competency = builder.competency("Empty")
        empty_indicator = builder.indicator(empty_competency)

        by_competency = catalog.get_indicators_for_competencies(
            [data["competency"].id, empty_competency.id]
        )
        by_indicator = catalog.get_questions_for_indicators([indicator.id, empty_indicator.id])

        assert by_competency[data["competency"].id] == [indicator]
        assert by_competency[empty_competency.id] == [empty_indicator]
        assert {q.id for q in by_indicator[indicator.id]} == {q.id for q in questions}
        assert by_indicator[empty_indicator.id] == []

    def test_statistics_only_for_known_questions(self, builder, catalog):
        competency = builder.competency("Planning")
        indicator = builder.indicator(competency)
        with_stats = builder.question(indicator, status=ItemValidityStatus.RETIRED)
        without_stats = builder.question(indicator)

        stats = catalog.get_statistics([with_stats.id, without_stats.id])

        assert list(stats) == [with_stats.id]
        assert stats[with_stats.id].validity_status == ItemValidityStatus.RETIRED

    def test_reference_data(self, catalog):
        team_id = uuid.uuid4()
        catalog.add_benchmark(BenchmarkProfile("15-1252.00", "Software Developers", {"X": 4.0}))
        catalog.add_team(TeamProfile(team_id=team_id, member_count=3))

        assert catalog.get_benchmark("15-1252.00").title == "Software Developers"
        assert catalog.get_benchmark("99-9999.00") is None
        assert catalog.get_team_profile(team_id).member_count == 3
        assert catalog.get_team_profile(uuid.uuid4()) is None


class TestAnswerHistory:
    def test_filters_by_session_and_question(self, catalog):
        first, second = uuid.uuid4(), uuid.uuid4()
        kept, dropped = uuid.uuid4(), uuid.uuid4()
        catalog.record_answers(first, [Answer(kept, likert_value=4), Answer(dropped, likert_value=2)])
        catalog.record_answers(second, [Answer(dropped, likert_value=1)])

        history = catalog.get_session_answers([first, second, uuid.uuid4()], [kept])

        assert list(history) == [first]
        assert [a.question_id for a in history[first]] == [kept]

    def test_without_question_filter(self, catalog):
        session_id = uuid.uuid4()
        catalog.record_answers(session_id, [Answer(uuid.uuid4()), Answer(uuid.uuid4())])

        assert len(catalog.get_session_answers([session_id])[session_id]) == 2


class TestExposure:
    def test_increment_replaces_records(self, builder, catalog):
        competency = builder.competency("Planning")
        indicator = builder.indicator(competency)
        question = builder.question(indicator, exposure_count=4)

        updated = catalog.increment_exposure([question.id, uuid.uuid4()])

        assert updated == 1
        assert catalog.questions[question.id].exposure_count == 5
        assert question.exposure_count == 4

    def test_concurrent_increments_are_not_lost(self, builder, catalog):
        competency = builder.competency("Planning")
        question = builder.question(builder.indicator(competency))

        def work():
            for _ in range(100):
                catalog.increment_exposure([question.id])

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert catalog.questions[question.id].exposure_count == 400
