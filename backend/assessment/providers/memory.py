"""
Dict-backed implementation of every provider protocol.

Used by the test suite, by blueprint simulation and as a reference for what
each protocol method must return. Exposure counters are guarded by a lock
so concurrent assemblies never lose an increment.
"""

import dataclasses
import threading
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

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


class InMemoryCatalog:
    """In-memory competency, indicator, question and reference data store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.competencies: Dict[uuid.UUID, Competency] = {}
        self.indicators: Dict[uuid.UUID, Indicator] = {}
        self.questions: Dict[uuid.UUID, Question] = {}
        self.statistics: Dict[uuid.UUID, ItemStatistics] = {}
        self.benchmarks: Dict[str, BenchmarkProfile] = {}
        self.teams: Dict[uuid.UUID, TeamProfile] = {}
        self.reliability: Dict[uuid.UUID, CompetencyReliability] = {}
        self.answers: Dict[uuid.UUID, List[Answer]] = defaultdict(list)

    # -- population helpers -------------------------------------------------

    def add_competency(self, competency: Competency) -> Competency:
        self.competencies[competency.id] = competency
        return competency

    def add_indicator(self, indicator: Indicator) -> Indicator:
        self.indicators[indicator.id] = indicator
        return indicator

    def add_question(
        self, question: Question, statistics: Optional[ItemStatistics] = None
    ) -> Question:
        self.questions[question.id] = question
        if statistics is not None:
            self.statistics[question.id] = statistics
        return question

    def add_benchmark(self, profile: BenchmarkProfile) -> None:
        self.benchmarks[profile.occupation_code] = profile

    def add_team(self, profile: TeamProfile) -> None:
        self.teams[profile.team_id] = profile

    def add_reliability(self, reliability: CompetencyReliability) -> None:
        self.reliability[reliability.competency_id] = reliability

    def record_answers(self, session_id: uuid.UUID, answers: Iterable[Answer]) -> None:
        self.answers[session_id].extend(answers)

    # -- CompetencyRepository ---------------------------------------------

    def get_competencies(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Competency]:
        return {i: self.competencies[i] for i in set(ids) if i in self.competencies}

    def list_competencies(self) -> List[Competency]:
        return list(self.competencies.values())

    # -- IndicatorRepository ----------------------------------------------

    def get_indicators(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Indicator]:
        return {i: self.indicators[i] for i in set(ids) if i in self.indicators}

    def get_indicators_for_competencies(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Indicator]]:
        wanted = set(competency_ids)
        grouped: Dict[uuid.UUID, List[Indicator]] = {c: [] for c in wanted}
        for indicator in self.indicators.values():
            if indicator.competency_id in wanted:
                grouped[indicator.competency_id].append(indicator)
        return grouped

    # -- QuestionRepository -----------------------------------------------

    def get_questions(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Question]:
        with self._lock:
            return {i: self.questions[i] for i in set(ids) if i in self.questions}

    def get_questions_for_indicators(
        self, indicator_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Question]]:
        wanted = set(indicator_ids)
        grouped: Dict[uuid.UUID, List[Question]] = {i: [] for i in wanted}
        with self._lock:
            for question in self.questions.values():
                if question.indicator_id in wanted:
                    grouped[question.indicator_id].append(question)
        return grouped

    # -- ItemStatisticsProvider -------------------------------------------

    def get_statistics(
        self, question_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, ItemStatistics]:
        return {q: self.statistics[q] for q in set(question_ids) if q in self.statistics}

    # -- Benchmark / Team / Reliability -----------------------------------

    def get_benchmark(self, occupation_code: str) -> Optional[BenchmarkProfile]:
        return self.benchmarks.get(occupation_code)

    def get_team_profile(self, team_id: uuid.UUID) -> Optional[TeamProfile]:
        return self.teams.get(team_id)

    def get_reliability(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, CompetencyReliability]:
        return {c: self.reliability[c] for c in set(competency_ids) if c in self.reliability}

    # -- AnswerHistoryProvider --------------------------------------------

    def get_session_answers(
        self,
        session_ids: Iterable[uuid.UUID],
        question_ids: Optional[Iterable[uuid.UUID]] = None,
    ) -> Dict[uuid.UUID, List[Answer]]:
        allowed = set(question_ids) if question_ids is not None else None
        result: Dict[uuid.UUID, List[Answer]] = {}
        for session_id in set(session_ids):
            answers = self.answers.get(session_id, [])
            if allowed is not None:
                answers = [a for a in answers if a.question_id in allowed]
            if answers:
                result[session_id] = list(answers)
        return result

    # -- ExposureStore ----------------------------------------------------

    def increment_exposure(self, question_ids: Sequence[uuid.UUID]) -> int:
        updated = 0
        with self._lock:
            for question_id in question_ids:
                question = self.questions.get(question_id)
                if question is None:
                    continue
                self.questions[question_id] = dataclasses.replace(
                    question, exposure_count=question.exposure_count + 1
                )
                updated += 1
        return updated
