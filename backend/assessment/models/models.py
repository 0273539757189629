"""
Database models for the competency assessment engine.

Column-style declarative models. Each model that crosses into the engine
exposes ``to_domain()`` returning the frozen record from ``domain.py``.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from libs.domain_types import (
    BigFiveTrait,
    DifficultyLevel,
    ItemValidityStatus,
    QuestionType,
)

from .base import Base
from .domain import (
    Answer,
    BenchmarkProfile,
    Competency as CompetencyRecord,
    CompetencyReliability as CompetencyReliabilityRecord,
    Indicator as IndicatorRecord,
    ItemStatistics as ItemStatisticsRecord,
    Question as QuestionRecord,
    TeamProfile,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Competency(Base):
    """A named skill/trait area composed of behavioral indicators."""

    __tablename__ = "competencies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100))
    # External mappings that modulate scoring weight
    onet_code = Column(String(20))  # O*NET SOC / element code
    esco_uri = Column(String(500))  # ESCO skill URI
    big_five_category = Column(Enum(BigFiveTrait), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    indicators = relationship(
        "BehavioralIndicator", back_populates="competency", cascade="all, delete-orphan"
    )

    def to_domain(self) -> CompetencyRecord:
        return CompetencyRecord(
            id=self.id,
            name=self.name,
            category=self.category,
            onet_code=self.onet_code,
            esco_uri=self.esco_uri,
            big_five_category=self.big_five_category,
            is_active=self.is_active,
        )


class BehavioralIndicator(Base):
    """A measurable sub-trait of a competency, weighted within it."""

    __tablename__ = "behavioral_indicators"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    competency_id = Column(
        Uuid, ForeignKey("competencies.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False)
    weight = Column(Float, default=1.0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    competency = relationship("Competency", back_populates="indicators")
    questions = relationship(
        "AssessmentQuestion", back_populates="indicator", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_behavioral_indicators_competency", "competency_id"),
        CheckConstraint("weight > 0", name="ck_behavioral_indicators_weight_positive"),
    )

    def to_domain(self) -> IndicatorRecord:
        return IndicatorRecord(
            id=self.id,
            competency_id=self.competency_id,
            title=self.title,
            weight=self.weight,
            is_active=self.is_active,
        )


class AssessmentQuestion(Base):
    """A question belonging to exactly one behavioral indicator."""

    __tablename__ = "assessment_questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    indicator_id = Column(
        Uuid,
        ForeignKey("behavioral_indicators.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_text = Column(Text, nullable=False, default="")
    question_type = Column(Enum(QuestionType), nullable=False)
    difficulty_level = Column(
        Enum(DifficultyLevel), nullable=False, default=DifficultyLevel.INTERMEDIATE
    )
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # Monotonic; incremented only by ExposureTracker on committed assembly
    exposure_count = Column(Integer, default=0, nullable=False)
    context_neutral = Column(Boolean, default=False, nullable=False)

    indicator = relationship("BehavioralIndicator", back_populates="questions")
    statistics = relationship(
        "ItemStatistics", back_populates="question", uselist=False
    )

    __table_args__ = (
        Index("ix_assessment_questions_indicator", "indicator_id"),
        CheckConstraint(
            "exposure_count >= 0", name="ck_assessment_questions_exposure_nonneg"
        ),
    )

    def to_domain(self) -> QuestionRecord:
        return QuestionRecord(
            id=self.id,
            indicator_id=self.indicator_id,
            question_type=self.question_type,
            difficulty=self.difficulty_level,
            is_active=self.is_active,
            exposure_count=self.exposure_count or 0,
            context_neutral=self.context_neutral,
        )


class ItemStatistics(Base):
    """Psychometric statistics per question, refreshed by the offline audit."""

    __tablename__ = "item_statistics"

    id = Column(Integer, primary_key=True)
    question_id = Column(
        Uuid,
        ForeignKey("assessment_questions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    validity_status = Column(
        Enum(ItemValidityStatus), nullable=False, default=ItemValidityStatus.PROBATION
    )
    discrimination_index = Column(Float, nullable=True)  # Point-biserial, -1..1
    response_count = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    question = relationship("AssessmentQuestion", back_populates="statistics")

    def to_domain(self) -> ItemStatisticsRecord:
        return ItemStatisticsRecord(
            question_id=self.question_id,
            validity_status=self.validity_status,
            discrimination_index=self.discrimination_index,
        )


class CompetencyReliability(Base):
    """Cronbach's alpha and score spread per competency."""

    __tablename__ = "competency_reliability"

    competency_id = Column(
        Uuid, ForeignKey("competencies.id", ondelete="CASCADE"), primary_key=True
    )
    cronbach_alpha = Column(Float, nullable=True)
    sample_size = Column(Integer, default=0, nullable=False)
    score_sd = Column(Float, nullable=True)

    def to_domain(self) -> CompetencyReliabilityRecord:
        return CompetencyReliabilityRecord(
            competency_id=self.competency_id,
            cronbach_alpha=self.cronbach_alpha,
            sample_size=self.sample_size or 0,
            score_sd=self.score_sd,
        )


class OccupationBenchmark(Base):
    """Cached occupation benchmark profile (competency name -> 1-5 level)."""

    __tablename__ = "occupation_benchmarks"

    occupation_code = Column(String(20), primary_key=True)
    title = Column(String(255), nullable=False, default="")
    benchmarks = Column(JSON, nullable=False, default=dict)
    fetched_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    def to_domain(self) -> BenchmarkProfile:
        return BenchmarkProfile(
            occupation_code=self.occupation_code,
            title=self.title,
            benchmarks={k: float(v) for k, v in (self.benchmarks or {}).items()},
        )


class TeamProfileSnapshot(Base):
    """Latest aggregated profile of a team, written by the team service."""

    __tablename__ = "team_profile_snapshots"

    team_id = Column(Uuid, primary_key=True)
    member_count = Column(Integer, nullable=False, default=0)
    # {competency_id (str): saturation 0-1}
    competency_saturation = Column(JSON, nullable=False, default=dict)
    # {big five trait value: average 0-100}
    personality_profile = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    def to_domain(self) -> TeamProfile:
        return TeamProfile(
            team_id=self.team_id,
            member_count=self.member_count,
            competency_saturation={
                uuid.UUID(k): float(v)
                for k, v in (self.competency_saturation or {}).items()
            },
            personality_profile={
                BigFiveTrait(k): float(v)
                for k, v in (self.personality_profile or {}).items()
            },
        )


class TestAnswer(Base):
    """A respondent's answer within a test session."""

    __tablename__ = "test_answers"
    __test__ = False  # Not a pytest test class

    id = Column(Integer, primary_key=True)
    session_id = Column(Uuid, nullable=False, index=True)
    question_id = Column(
        Uuid,
        ForeignKey("assessment_questions.id", ondelete="CASCADE"),
        nullable=False,
    )
    likert_value = Column(Integer, nullable=True)
    score = Column(Float, nullable=True)
    is_skipped = Column(Boolean, default=False, nullable=False)
    answered_at = Column(DateTime(timezone=True), nullable=True)
    time_spent_seconds = Column(Integer, nullable=True)

    question = relationship("AssessmentQuestion")

    __table_args__ = (
        Index("ix_test_answers_session_question", "session_id", "question_id"),
    )

    def to_domain(self) -> Answer:
        return Answer(
            question_id=self.question_id,
            likert_value=self.likert_value,
            score=self.score,
            skipped=self.is_skipped,
            answered=self.answered_at is not None,
            time_spent_seconds=self.time_spent_seconds,
        )
