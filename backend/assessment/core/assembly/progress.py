"""
In-memory progress tracking for test assembly.

Each running assembly has one ``AssemblyProgress`` entry keyed by session id.
Entries are removed on completion or failure, so the map only ever holds
assemblies that are still running. Every state change is published to the
registered listeners on a small worker pool: delivery is fire-and-forget and
a failing listener is logged, never propagated to the assembling thread.
"""

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from libs.domain_types import AssessmentGoal

from assessment.core.config import settings
from assessment.core.graceful_failure import graceful_failure

logger = logging.getLogger(__name__)


class AssemblyPhase(str, Enum):
    INITIALIZING = "INITIALIZING"
    SELECTING = "SELECTING"
    VALIDATING = "VALIDATING"
    SHUFFLING = "SHUFFLING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


_TERMINAL_PHASES = frozenset({AssemblyPhase.COMPLETE, AssemblyPhase.FAILED})


@dataclass(frozen=True)
class AssemblyProgress:
    """Immutable snapshot; every transition produces a new instance."""

    session_id: uuid.UUID
    template_id: Optional[uuid.UUID]
    goal: AssessmentGoal
    total_competencies: int
    processed_competencies: int
    total_questions_selected: int
    phase: AssemblyPhase
    percent_complete: float
    started_at: datetime
    last_update: datetime

    @property
    def is_in_progress(self) -> bool:
        return self.phase not in _TERMINAL_PHASES

    @property
    def elapsed_ms(self) -> int:
        return int((self.last_update - self.started_at).total_seconds() * 1000)


@dataclass(frozen=True)
class AssemblyProgressEvent:
    progress: AssemblyProgress
    message: str


ProgressListener = Callable[[AssemblyProgressEvent], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AssemblyProgressTracker:
    """
    Thread-safe registry of running assemblies.

    All map mutations happen under ``_lock``. Listener notification is
    submitted to the executor after the lock is released.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._lock = threading.Lock()
        self._active: Dict[uuid.UUID, AssemblyProgress] = {}
        self._listeners: List[ProgressListener] = []
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.PROGRESS_NOTIFIER_WORKERS,
            thread_name_prefix="assembly-progress",
        )

    def add_listener(self, listener: ProgressListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def start(
        self,
        session_id: uuid.UUID,
        template_id: Optional[uuid.UUID],
        goal: AssessmentGoal,
        total_competencies: int,
    ) -> AssemblyProgress:
        logger.info(
            f"Starting assembly progress tracking for session {session_id} "
            f"(goal: {goal.value}, competencies: {total_competencies})"
        )
        now = _now()
        progress = AssemblyProgress(
            session_id=session_id,
            template_id=template_id,
            goal=goal,
            total_competencies=total_competencies,
            processed_competencies=0,
            total_questions_selected=0,
            phase=AssemblyPhase.INITIALIZING,
            percent_complete=0.0,
            started_at=now,
            last_update=now,
        )
        with self._lock:
            self._active[session_id] = progress
        self._publish(progress, "Assembly started")
        return progress

    def update_phase(
        self,
        session_id: uuid.UUID,
        phase: Union[AssemblyPhase, str],
        percent: float,
        message: str,
    ) -> Optional[AssemblyProgress]:
        """Move to a new phase. Unknown phase names fall back to SELECTING."""
        if not isinstance(phase, AssemblyPhase):
            try:
                phase = AssemblyPhase(str(phase).upper())
            except ValueError:
                logger.warning(
                    f"Invalid assembly phase name: {phase}. Using SELECTING as default."
                )
                phase = AssemblyPhase.SELECTING

        with self._lock:
            current = self._active.get(session_id)
            if current is None:
                return None
            updated = replace(current, phase=phase, percent_complete=percent, last_update=_now())
            self._active[session_id] = updated

        logger.debug(
            f"Assembly phase update for session {session_id}: {phase.value} ({percent:.1f}%)"
        )
        self._publish(updated, message)
        return updated

    def increment_competency(
        self, session_id: uuid.UUID, questions_added: int, competency_name: str
    ) -> Optional[AssemblyProgress]:
        with self._lock:
            current = self._active.get(session_id)
            if current is None:
                return None
            processed = current.processed_competencies + 1
            percent = (
                processed / current.total_competencies * 100.0
                if current.total_competencies > 0
                else 0.0
            )
            updated = replace(
                current,
                processed_competencies=processed,
                total_questions_selected=current.total_questions_selected + questions_added,
                phase=AssemblyPhase.SELECTING,
                percent_complete=percent,
                last_update=_now(),
            )
            self._active[session_id] = updated

        logger.debug(
            f"Assembly progress for session {session_id}: processed competency "
            f"'{competency_name}' (+{questions_added} questions, {percent:.1f}%)"
        )
        self._publish(updated, f"Processing: {competency_name}")
        return updated

    def complete(self, session_id: uuid.UUID, total_questions: int) -> Optional[AssemblyProgress]:
        with self._lock:
            current = self._active.pop(session_id, None)
        if current is None:
            logger.debug(f"No active assembly found for session {session_id} to complete")
            return None

        completed = replace(
            current,
            processed_competencies=current.total_competencies,
            total_questions_selected=total_questions,
            phase=AssemblyPhase.COMPLETE,
            percent_complete=100.0,
            last_update=_now(),
        )
        logger.info(
            f"Assembly completed for session {session_id}: {total_questions} questions "
            f"in {completed.elapsed_ms}ms"
        )
        self._publish(completed, f"Assembly complete: {total_questions} questions")
        return completed

    def fail(self, session_id: uuid.UUID, error_message: str) -> Optional[AssemblyProgress]:
        with self._lock:
            current = self._active.pop(session_id, None)
        if current is None:
            logger.debug(f"No active assembly found for session {session_id} to mark as failed")
            return None

        failed = replace(current, phase=AssemblyPhase.FAILED, last_update=_now())
        logger.error(
            f"Assembly failed for session {session_id}: {error_message} "
            f"(after {failed.elapsed_ms}ms)"
        )
        self._publish(failed, f"Assembly failed: {error_message}")
        return failed

    def get_progress(self, session_id: uuid.UUID) -> Optional[AssemblyProgress]:
        with self._lock:
            return self._active.get(session_id)

    def is_assembly_in_progress(self, session_id: uuid.UUID) -> bool:
        progress = self.get_progress(session_id)
        return progress is not None and progress.is_in_progress

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the notifier pool, by default draining queued notifications."""
        self._executor.shutdown(wait=wait)

    def _publish(self, progress: AssemblyProgress, message: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        event = AssemblyProgressEvent(progress=progress, message=message)
        for listener in listeners:
            self._executor.submit(self._deliver, listener, event)

    @staticmethod
    def _deliver(listener: ProgressListener, event: AssemblyProgressEvent) -> None:
        with graceful_failure(
            "notify assembly progress listener",
            logger,
            log_level=logging.ERROR,
            exc_info=True,
            context={"session_id": event.progress.session_id},
        ):
            listener(event)
