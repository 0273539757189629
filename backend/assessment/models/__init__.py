"""
Models package: ORM tables and the plain domain records the engine consumes.
"""
from .base import Base, engine, SessionLocal, get_db, build_engine
from .models import (
    Competency,
    BehavioralIndicator,
    AssessmentQuestion,
    ItemStatistics,
    CompetencyReliability,
    OccupationBenchmark,
    TeamProfileSnapshot,
    TestAnswer,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "build_engine",
    "Competency",
    "BehavioralIndicator",
    "AssessmentQuestion",
    "ItemStatistics",
    "CompetencyReliability",
    "OccupationBenchmark",
    "TeamProfileSnapshot",
    "TestAnswer",
]
