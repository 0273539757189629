"""
Tests for TestAssemblyService across the three assessment goals.
"""
import uuid
from collections import Counter
from unittest.mock import MagicMock

import pytest

from libs.domain_types import DifficultyLevel

from assessment.core.assembly import (
    AssemblyProgressTracker,
    TestAssemblyService,
    difficulty_for_strictness,
    questions_for_saturation,
)
from assessment.core.blueprint import (
    BlueprintValidator,
    JobFitBlueprint,
    OverviewBlueprint,
    TeamFitBlueprint,
)
from assessment.core.exceptions import BlueprintValidationError, InsufficientInventoryError
from assessment.core.selection import (
    ExposureTracker,
    QuestionSelectionEngine,
    WarningCode,
    seed_from_session,
)
from assessment.models.domain import BenchmarkProfile, TeamProfile


def _service(catalog, progress=None, exposure=None):
    engine = QuestionSelectionEngine(catalog, catalog, catalog, catalog)
    return TestAssemblyService(
        engine=engine,
        validator=BlueprintValidator(engine),
        exposure=exposure or ExposureTracker(catalog),
        progress=progress or MagicMock(spec=AssemblyProgressTracker),
        benchmarks=catalog,
        teams=catalog,
    )


def _competency_of(catalog, question_id):
    indicator_id = catalog.questions[question_id].indicator_id
    return catalog.indicators[indicator_id].competency_id


class TestHelpers:
    @pytest.mark.parametrize(
        "strictness,expected",
        [
            (0, DifficultyLevel.FOUNDATIONAL),
            (30, DifficultyLevel.FOUNDATIONAL),
            (31, DifficultyLevel.INTERMEDIATE),
            (69, DifficultyLevel.INTERMEDIATE),
            (70, DifficultyLevel.ADVANCED),
            (100, DifficultyLevel.ADVANCED),
        ],
    )
    def test_difficulty_for_strictness(self, strictness, expected):
        assert difficulty_for_strictness(strictness) == expected

    @pytest.mark.parametrize(
        "saturation,expected",
        [(0.0, 6), (0.09, 6), (0.1, 4), (0.29, 4), (0.3, 3), (0.49, 3), (0.5, 2), (1.0, 2)],
    )
    def test_questions_for_saturation(self, saturation, expected):
        assert questions_for_saturation(saturation) == expected


class TestOverviewAssembly:
    """OVERVIEW goal: every named competency, context-neutral only."""

    @pytest.fixture
    def competencies(self, builder):
        return [
            builder.competency_with_questions(name, per_indicator=4)["competency"]
            for name in ("Communication", "Problem Solving")
        ]

    def test_selects_per_indicator_and_tracks_exposure(self, catalog, competencies):
        session_id = uuid.uuid4()
        blueprint = OverviewBlueprint(competency_ids=tuple(c.id for c in competencies))

        result = _service(catalog).assemble(session_id, blueprint)

        assert len(result.question_ids) == 6
        assert len(set(result.question_ids)) == 6
        assert Counter(_competency_of(catalog, q) for q in result.question_ids) == {
            competencies[0].id: 3,
            competencies[1].id: 3,
        }
        assert result.seed == seed_from_session(session_id)
        for question_id in result.question_ids:
            assert catalog.questions[question_id].exposure_count == 1
        untouched = set(catalog.questions) - set(result.question_ids)
        assert all(catalog.questions[q].exposure_count == 0 for q in untouched)

    def test_same_session_same_order(self, catalog, competencies):
        session_id = uuid.uuid4()
        blueprint = OverviewBlueprint(competency_ids=tuple(c.id for c in competencies))
        service = _service(catalog, exposure=MagicMock())

        first = service.assemble(session_id, blueprint)
        second = service.assemble(session_id, blueprint)

        assert first.question_ids == second.question_ids

    def test_progress_lifecycle(self, catalog, competencies):
        progress = MagicMock(spec=AssemblyProgressTracker)
        session_id = uuid.uuid4()
        template_id = uuid.uuid4()
        blueprint = OverviewBlueprint(competency_ids=tuple(c.id for c in competencies))

        _service(catalog, progress=progress).assemble(session_id, blueprint, template_id)

        start_args = progress.start.call_args[0]
        assert start_args[0] == session_id
        assert start_args[1] == template_id
        assert start_args[3] == 2
        assert progress.increment_competency.call_count == 2
        progress.complete.assert_called_once_with(session_id, 6)
        progress.fail.assert_not_called()

    def test_excludes_context_specific_questions(self, builder, catalog):
        competencies = []
        for name in ("Ethics", "Judgement"):
            competency = builder.competency(name)
            indicator = builder.indicator(competency)
            builder.questions(indicator, 3, context_neutral=True)
            builder.questions(indicator, 3, context_neutral=False)
            competencies.append(competency)

        result = _service(catalog).assemble(
            uuid.uuid4(), OverviewBlueprint(competency_ids=tuple(c.id for c in competencies))
        )

        assert all(catalog.questions[q].context_neutral for q in result.question_ids)

    def test_validation_warnings_are_returned(self, builder, catalog):
        competency = builder.competency_with_questions("Solo", per_indicator=3)["competency"]

        result = _service(catalog).assemble(
            uuid.uuid4(), OverviewBlueprint(competency_ids=(competency.id,))
        )

        assert [w.id for w in result.validation_warnings] == ["weight-concentration"]


class TestAssemblyFailures:
    def test_invalid_blueprint_raises_before_tracking(self, catalog):
        progress = MagicMock(spec=AssemblyProgressTracker)
        exposure = MagicMock()

        with pytest.raises(BlueprintValidationError) as exc_info:
            _service(catalog, progress=progress, exposure=exposure).assemble(
                uuid.uuid4(), OverviewBlueprint()
            )

        assert [i.id for i in exc_info.value.issues] == ["no-competencies"]
        progress.start.assert_not_called()
        exposure.track_exposure.assert_not_called()

    def test_empty_selection_fails_without_exposure(self, builder, catalog):
        competencies = []
        for name in ("Context A", "Context B"):
            competency = builder.competency(name)
            builder.questions(builder.indicator(competency), 3, context_neutral=False)
            competencies.append(competency)
        progress = MagicMock(spec=AssemblyProgressTracker)
        exposure = MagicMock()
        session_id = uuid.uuid4()

        with pytest.raises(InsufficientInventoryError):
            _service(catalog, progress=progress, exposure=exposure).assemble(
                session_id, OverviewBlueprint(competency_ids=tuple(c.id for c in competencies))
            )

        progress.fail.assert_called_once()
        assert progress.fail.call_args[0][0] == session_id
        progress.complete.assert_not_called()
        exposure.track_exposure.assert_not_called()

    def test_failed_assembly_clears_real_tracker(self, builder, catalog, progress_tracker):
        competency = builder.competency("Context only")
        builder.questions(builder.indicator(competency), 3, context_neutral=False)
        session_id = uuid.uuid4()

        with pytest.raises(InsufficientInventoryError):
            _service(catalog, progress=progress_tracker).assemble(
                session_id, OverviewBlueprint(competency_ids=(competency.id,))
            )

        assert progress_tracker.get_progress(session_id) is None

    def test_exposure_failure_marks_progress_failed(self, builder, catalog):
        competency = builder.competency_with_questions("Stocked")["competency"]
        progress = MagicMock(spec=AssemblyProgressTracker)
        exposure = MagicMock()
        exposure.track_exposure.side_effect = RuntimeError("database is locked")

        with pytest.raises(RuntimeError):
            _service(catalog, progress=progress, exposure=exposure).assemble(
                uuid.uuid4(), OverviewBlueprint(competency_ids=(competency.id,))
            )

        progress.fail.assert_called_once()
        progress.complete.assert_not_called()


class TestJobFitAssembly:
    """JOB_FIT goal: benchmark-resolved competencies at strictness difficulty."""

    @pytest.fixture
    def occupation(self, builder, catalog):
        competencies = {}
        for name in ("Critical Thinking", "Active Listening"):
            competency = builder.competency(name)
            indicator = builder.indicator(competency)
            builder.question(indicator, difficulty=DifficultyLevel.ADVANCED)
            builder.questions(indicator, 3, difficulty=DifficultyLevel.INTERMEDIATE)
            competencies[name] = competency
        catalog.add_benchmark(
            BenchmarkProfile(
                occupation_code="15-1252.00",
                title="Software Developers",
                benchmarks={
                    "Critical Thinking Skills": 4.5,
                    "Active Listening": 3.0,
                    "Underwater Welding": 2.0,
                },
            )
        )
        return competencies

    def test_resolves_benchmark_competencies(self, catalog, occupation):
        result = _service(catalog).assemble(
            uuid.uuid4(), JobFitBlueprint(onet_soc_code="15-1252.00", strictness_level=50)
        )

        assert len(result.question_ids) == 4
        assert {_competency_of(catalog, q) for q in result.question_ids} == {
            c.id for c in occupation.values()
        }
        unmatched = [
            w for w in result.warnings if w.code == WarningCode.BENCHMARK_COMPETENCY_UNMATCHED
        ]
        assert [w.params["benchmark_name"] for w in unmatched] == ["Underwater Welding"]

    def test_strict_assessment_prefers_advanced(self, catalog, occupation):
        result = _service(catalog).assemble(
            uuid.uuid4(),
            JobFitBlueprint(
                onet_soc_code="15-1252.00", strictness_level=90, questions_per_indicator=1
            ),
        )

        assert len(result.question_ids) == 2
        assert all(
            catalog.questions[q].difficulty == DifficultyLevel.ADVANCED
            for q in result.question_ids
        )

    def test_unknown_occupation_with_explicit_competencies(self, builder, catalog):
        competency = builder.competency_with_questions("Negotiation")["competency"]

        result = _service(catalog).assemble(
            uuid.uuid4(),
            JobFitBlueprint(onet_soc_code="99-9999.00", competency_ids=(competency.id,)),
        )

        assert len(result.question_ids) == 2
        assert any(w.code == WarningCode.BENCHMARK_NOT_FOUND for w in result.warnings)

    def test_unknown_occupation_without_competencies_fails(self, catalog):
        with pytest.raises(InsufficientInventoryError):
            _service(catalog).assemble(uuid.uuid4(), JobFitBlueprint(onet_soc_code="99-9999.00"))


class TestTeamFitAssembly:
    """TEAM_FIT goal: gap-weighted selection over under-saturated competencies."""

    @pytest.fixture
    def team(self, builder, catalog):
        names = ("Gap", "Partial", "Covered")
        competencies = {
            name: builder.competency_with_questions(name, per_indicator=8)["competency"]
            for name in names
        }
        profile = TeamProfile(
            team_id=uuid.uuid4(),
            member_count=6,
            competency_saturation={
                competencies["Gap"].id: 0.05,
                competencies["Partial"].id: 0.4,
                competencies["Covered"].id: 0.9,
            },
        )
        catalog.add_team(profile)
        return profile, competencies

    def test_gap_weighted_allocation(self, catalog, team):
        profile, competencies = team

        result = _service(catalog).assemble(
            uuid.uuid4(), TeamFitBlueprint(team_id=profile.team_id)
        )

        # 6 + 3 questions; weights 1.95 and 1.6 allocate 5 and 4
        assert Counter(_competency_of(catalog, q) for q in result.question_ids) == {
            competencies["Gap"].id: 5,
            competencies["Partial"].id: 4,
        }

    def test_role_weights_shift_allocation(self, catalog, team):
        profile, competencies = team

        result = _service(catalog).assemble(
            uuid.uuid4(),
            TeamFitBlueprint(
                team_id=profile.team_id,
                role_competency_weights={competencies["Partial"].id: 3.0},
            ),
        )

        counts = Counter(_competency_of(catalog, q) for q in result.question_ids)
        assert counts[competencies["Partial"].id] > counts[competencies["Gap"].id]
        assert sum(counts.values()) == 9

    def test_fully_saturated_team_assesses_everything(self, builder, catalog):
        competencies = [
            builder.competency_with_questions(name, per_indicator=3)["competency"]
            for name in ("One", "Two")
        ]
        profile = TeamProfile(
            team_id=uuid.uuid4(),
            member_count=3,
            competency_saturation={c.id: 0.95 for c in competencies},
        )
        catalog.add_team(profile)

        result = _service(catalog).assemble(
            uuid.uuid4(), TeamFitBlueprint(team_id=profile.team_id)
        )

        assert Counter(_competency_of(catalog, q) for q in result.question_ids) == {
            competencies[0].id: 2,
            competencies[1].id: 2,
        }

    def test_missing_team_profile_warns(self, builder, catalog):
        competency = builder.competency_with_questions("Explicit")["competency"]

        result = _service(catalog).assemble(
            uuid.uuid4(),
            TeamFitBlueprint(team_id=uuid.uuid4(), competency_ids=(competency.id,)),
        )

        assert len(result.question_ids) == 2
        assert any(w.code == WarningCode.TEAM_PROFILE_NOT_FOUND for w in result.warnings)
