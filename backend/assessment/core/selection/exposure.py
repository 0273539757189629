"""
Exposure tracking for assembled questions.

Selection only reads exposure counts. Once an assembly has committed to a
question set, ``ExposureTracker.track_exposure`` increments each question's
counter exactly once through an ``ExposureStore``, which applies the write
as its own unit of work.
"""

import logging
import uuid
from typing import Iterable

from assessment.providers.base import ExposureStore

logger = logging.getLogger(__name__)


class ExposureTracker:
    def __init__(self, store: ExposureStore):
        self.store = store

    def track_exposure(self, question_ids: Iterable[uuid.UUID]) -> int:
        """
        Increment the exposure counter of every question in the set by one.

        Duplicate ids count once. Store failures propagate to the caller.

        Returns:
            Number of counters updated.
        """
        unique_ids = list(dict.fromkeys(question_ids))
        if not unique_ids:
            return 0

        updated = self.store.increment_exposure(unique_ids)
        if updated != len(unique_ids):
            logger.warning(
                f"Exposure tracking updated {updated} of {len(unique_ids)} questions; "
                "some ids were not found"
            )
        else:
            logger.debug(f"Tracked exposure for {updated} questions")
        return updated
