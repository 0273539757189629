"""
Tests for SelectionContext seeding and warning collection.
"""
import uuid

from assessment.core.selection import (
    SelectionContext,
    SelectionWarning,
    WarningCode,
    WarningLevel,
    seed_from_session,
)


class TestSeedFromSession:
    def test_uses_most_significant_64_bits(self):
        session_id = uuid.UUID(int=(5 << 64) | 7)
        assert seed_from_session(session_id) == 5

    def test_context_records_seed(self):
        session_id = uuid.UUID(int=(123 << 64) | 99)
        ctx = SelectionContext.for_session(session_id)
        assert ctx.seed == 123


class TestDeterminism:
    """Two contexts from the same session draw the same random stream."""

    def test_same_session_same_shuffle(self):
        session_id = uuid.uuid4()
        first, second = list(range(50)), list(range(50))

        SelectionContext.for_session(session_id).rng.shuffle(first)
        SelectionContext.for_session(session_id).rng.shuffle(second)

        assert first == second

    def test_contexts_do_not_share_state(self):
        a = SelectionContext.seeded(1)
        b = SelectionContext.seeded(1)
        a.rng.random()
        a.warn(WarningCode.EMPTY_WEIGHTS, "a only")

        assert b.warnings == []
        assert b.rng.random() != a.rng.random()

    def test_unseeded_has_no_seed(self):
        assert SelectionContext.unseeded().seed is None


class TestWarnings:
    def test_warn_appends_and_returns(self):
        ctx = SelectionContext.seeded(0)
        warning = ctx.warn(
            WarningCode.BENCHMARK_NOT_FOUND,
            "No benchmark",
            level=WarningLevel.INFO,
            occupation_code="15-1252.00",
        )

        assert ctx.warnings == [warning]
        assert warning.level == WarningLevel.INFO
        assert ctx.has_warning(WarningCode.BENCHMARK_NOT_FOUND)
        assert not ctx.has_warning(WarningCode.EMPTY_WEIGHTS)

    def test_default_level_is_warning(self):
        ctx = SelectionContext.seeded(0)
        assert ctx.warn(WarningCode.EMPTY_WEIGHTS, "empty").level == WarningLevel.WARNING

    def test_to_dict_stringifies_params(self):
        indicator_id = uuid.uuid4()
        warning = SelectionWarning(
            level=WarningLevel.WARNING,
            code=WarningCode.INDICATOR_EXHAUSTED_BORROWING,
            message="Borrowing",
            params={"indicator_id": indicator_id, "count": 2},
        )

        assert warning.to_dict() == {
            "level": "WARNING",
            "code": "INDICATOR_EXHAUSTED_BORROWING",
            "message": "Borrowing",
            "params": {"indicator_id": str(indicator_id), "count": "2"},
        }
