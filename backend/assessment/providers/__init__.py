"""
Provider boundary: protocols plus in-memory and SQLAlchemy implementations.
"""
from .base import (
    AnswerHistoryProvider,
    BenchmarkProvider,
    CompetencyRepository,
    ExposureStore,
    IndicatorRepository,
    ItemStatisticsProvider,
    QuestionRepository,
    ReliabilityProvider,
    TeamProfileProvider,
)
from .memory import InMemoryCatalog
from .sql import SqlCatalog, SqlExposureStore

__all__ = [
    "AnswerHistoryProvider",
    "BenchmarkProvider",
    "CompetencyRepository",
    "ExposureStore",
    "IndicatorRepository",
    "ItemStatisticsProvider",
    "QuestionRepository",
    "ReliabilityProvider",
    "TeamProfileProvider",
    "InMemoryCatalog",
    "SqlCatalog",
    "SqlExposureStore",
]
