"""
SQLAlchemy-backed providers.

``SqlCatalog`` performs read-only batch lookups on the session it is given
(one query per method call, never one per item). ``SqlExposureStore`` owns
the only write the engine makes and opens a fresh session for every call so
the increment commits independently of whatever read session the selection
ran in.
"""

import logging
import uuid
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

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
from assessment.models.models import (
    AssessmentQuestion,
    BehavioralIndicator,
    Competency as CompetencyRow,
    CompetencyReliability as CompetencyReliabilityRow,
    ItemStatistics as ItemStatisticsRow,
    OccupationBenchmark,
    TeamProfileSnapshot,
    TestAnswer,
)

logger = logging.getLogger(__name__)


class SqlCatalog:
    """Read-only provider over an open SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get_competencies(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Competency]:
        id_list = list(set(ids))
        if not id_list:
            return {}
        rows = self.db.query(CompetencyRow).filter(CompetencyRow.id.in_(id_list)).all()
        return {row.id: row.to_domain() for row in rows}

    def list_competencies(self) -> List[Competency]:
        return [row.to_domain() for row in self.db.query(CompetencyRow).all()]

    def get_indicators(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Indicator]:
        id_list = list(set(ids))
        if not id_list:
            return {}
        rows = (
            self.db.query(BehavioralIndicator)
            .filter(BehavioralIndicator.id.in_(id_list))
            .all()
        )
        return {row.id: row.to_domain() for row in rows}

    def get_indicators_for_competencies(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Indicator]]:
        id_list = list(set(competency_ids))
        grouped: Dict[uuid.UUID, List[Indicator]] = {c: [] for c in id_list}
        if not id_list:
            return grouped
        rows = (
            self.db.query(BehavioralIndicator)
            .filter(BehavioralIndicator.competency_id.in_(id_list))
            .all()
        )
        for row in rows:
            grouped[row.competency_id].append(row.to_domain())
        return grouped

    def get_questions(self, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Question]:
        id_list = list(set(ids))
        if not id_list:
            return {}
        rows = (
            self.db.query(AssessmentQuestion)
            .filter(AssessmentQuestion.id.in_(id_list))
            .all()
        )
        return {row.id: row.to_domain() for row in rows}

    def get_questions_for_indicators(
        self, indicator_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Question]]:
        id_list = list(set(indicator_ids))
        grouped: Dict[uuid.UUID, List[Question]] = {i: [] for i in id_list}
        if not id_list:
            return grouped
        rows = (
            self.db.query(AssessmentQuestion)
            .filter(AssessmentQuestion.indicator_id.in_(id_list))
            .all()
        )
        for row in rows:
            grouped[row.indicator_id].append(row.to_domain())
        return grouped

    def get_statistics(
        self, question_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, ItemStatistics]:
        id_list = list(set(question_ids))
        if not id_list:
            return {}
        rows = (
            self.db.query(ItemStatisticsRow)
            .filter(ItemStatisticsRow.question_id.in_(id_list))
            .all()
        )
        return {row.question_id: row.to_domain() for row in rows}

    def get_benchmark(self, occupation_code: str) -> Optional[BenchmarkProfile]:
        row = (
            self.db.query(OccupationBenchmark)
            .filter(OccupationBenchmark.occupation_code == occupation_code)
            .first()
        )
        return row.to_domain() if row is not None else None

    def get_team_profile(self, team_id: uuid.UUID) -> Optional[TeamProfile]:
        row = (
            self.db.query(TeamProfileSnapshot)
            .filter(TeamProfileSnapshot.team_id == team_id)
            .first()
        )
        return row.to_domain() if row is not None else None

    def get_reliability(
        self, competency_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, CompetencyReliability]:
        id_list = list(set(competency_ids))
        if not id_list:
            return {}
        rows = (
            self.db.query(CompetencyReliabilityRow)
            .filter(CompetencyReliabilityRow.competency_id.in_(id_list))
            .all()
        )
        return {row.competency_id: row.to_domain() for row in rows}

    def get_session_answers(
        self,
        session_ids: Iterable[uuid.UUID],
        question_ids: Optional[Iterable[uuid.UUID]] = None,
    ) -> Dict[uuid.UUID, List[Answer]]:
        id_list = list(set(session_ids))
        if not id_list:
            return {}
        query = self.db.query(TestAnswer).filter(TestAnswer.session_id.in_(id_list))
        if question_ids is not None:
            query = query.filter(TestAnswer.question_id.in_(list(set(question_ids))))
        grouped: Dict[uuid.UUID, List[Answer]] = defaultdict(list)
        for row in query.all():
            grouped[row.session_id].append(row.to_domain())
        return dict(grouped)


class SqlExposureStore:
    """Exposure counter writes, each call in its own committed session."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def increment_exposure(self, question_ids: Sequence[uuid.UUID]) -> int:
        id_list = list(question_ids)
        if not id_list:
            return 0
        db = self._session_factory()
        try:
            updated = (
                db.query(AssessmentQuestion)
                .filter(AssessmentQuestion.id.in_(id_list))
                .update(
                    {AssessmentQuestion.exposure_count: AssessmentQuestion.exposure_count + 1},
                    synchronize_session=False,
                )
            )
            db.commit()
            return updated
        except SQLAlchemyError:
            db.rollback()
            logger.error(
                f"Exposure increment failed for {len(id_list)} questions", exc_info=True
            )
            raise
        finally:
            db.close()
