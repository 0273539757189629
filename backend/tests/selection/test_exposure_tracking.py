"""
Tests for ExposureTracker.
"""
import uuid
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from assessment.core.selection import ExposureTracker


class TestTrackExposure:
    """Tests for exposure counter increments."""

    def test_increments_each_question_once(self, builder, catalog):
        competency = builder.competency("Communication")
        indicator = builder.indicator(competency)
        q1, q2, q3 = builder.questions(indicator, 3)

        updated = ExposureTracker(catalog).track_exposure([q1.id, q1.id, q2.id])

        assert updated == 2
        assert catalog.questions[q1.id].exposure_count == 1
        assert catalog.questions[q2.id].exposure_count == 1
        assert catalog.questions[q3.id].exposure_count == 0

    def test_repeated_tracking_accumulates(self, builder, catalog):
        indicator = builder.indicator(builder.competency("Teamwork"))
        question = builder.question(indicator, exposure_count=4)
        tracker = ExposureTracker(catalog)

        tracker.track_exposure([question.id])
        tracker.track_exposure([question.id])

        assert catalog.questions[question.id].exposure_count == 6

    def test_empty_input_skips_store(self):
        store = MagicMock()
        assert ExposureTracker(store).track_exposure([]) == 0
        store.increment_exposure.assert_not_called()

    def test_store_receives_deduplicated_ids_in_order(self):
        store = MagicMock()
        store.increment_exposure.return_value = 2
        a, b = uuid.uuid4(), uuid.uuid4()

        ExposureTracker(store).track_exposure([a, b, a])

        store.increment_exposure.assert_called_once_with([a, b])

    def test_unknown_ids_log_warning(self, builder, catalog):
        indicator = builder.indicator(builder.competency("Planning"))
        question = builder.question(indicator)

        with patch("assessment.core.selection.exposure.logger") as mock_logger:
            updated = ExposureTracker(catalog).track_exposure([question.id, uuid.uuid4()])

        assert updated == 1
        mock_logger.warning.assert_called_once()
        assert "updated 1 of 2" in mock_logger.warning.call_args[0][0]

    def test_store_failure_propagates(self):
        store = MagicMock()
        store.increment_exposure.side_effect = OperationalError("UPDATE", {}, Exception("locked"))

        with pytest.raises(OperationalError):
            ExposureTracker(store).track_exposure([uuid.uuid4()])
