"""
Read boundary between the engine and its data sources.

The engine depends only on these protocols. Every method is a batch lookup
so one scoring or assembly run issues a bounded number of reads regardless
of how many answers or questions it touches. Retries for transient
unavailability belong to the implementations, not to the engine.

Two implementations ship with the package:
    - providers.memory.InMemoryCatalog: dict-backed, used by tests and
      simulations
    - providers.sql.SqlCatalog: SQLAlchemy-backed, used by the API
"""

import uuid
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from assessment.models.domain import (
    Answer,
    BenchmarkProfile,
    Competency,
    CompetencyReliability,
    Indicator,
    ItemStatistics,
    Question,
    TeamProfile,
)


@runtime_checkable
class CompetencyRepository(Protocol):
    def get_competencies(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Competency]:
        ...

    def list_competencies(self) -> List[Competency]:
        ...


@runtime_checkable
class IndicatorRepository(Protocol):
    def get_indicators(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Indicator]:
        ...

    def get_indicators_for_competencies(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Indicator]]:
        """Indicators (active or not) grouped by competency id."""
        ...


@runtime_checkable
class QuestionRepository(Protocol):
    def get_questions(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Question]:
        ...

    def get_questions_for_indicators(
        self, indicator_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Question]]:
        """Questions (active or not) grouped by indicator id."""
        ...


@runtime_checkable
class ItemStatisticsProvider(Protocol):
    def get_statistics(
        self, question_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, ItemStatistics]:
        """Statistics for the questions that have them; missing ids are omitted."""
        ...


@runtime_checkable
class BenchmarkProvider(Protocol):
    def get_benchmark(self, occupation_code: str) -> Optional[BenchmarkProfile]:
        ...


@runtime_checkable
class TeamProfileProvider(Protocol):
    def get_team_profile(self, team_id: uuid.UUID) -> Optional[TeamProfile]:
        ...


@runtime_checkable
class ReliabilityProvider(Protocol):
    def get_reliability(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, CompetencyReliability]:
        ...


@runtime_checkable
class AnswerHistoryProvider(Protocol):
    def get_session_answers(
        self,
        session_ids: Iterable[uuid.UUID],
        question_ids: Optional[Iterable[uuid.UUID]] = None,
    ) -> Dict[uuid.UUID, List[Answer]]:
        """Answers grouped by session, optionally restricted to some questions."""
        ...


@runtime_checkable
class ExposureStore(Protocol):
    """Write path for exposure counters.

    Implementations must apply each call as its own unit of work: never
    inside a caller's read transaction, never silently dropped.
    """

    def increment_exposure(self, question_ids: Sequence[uuid.UUID]) -> int:
        """Increment each question's counter by one. Returns rows updated."""
        ...
