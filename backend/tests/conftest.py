"""
Pytest configuration and shared fixtures for testing.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from libs.domain_types import (
    BigFiveTrait,
    DifficultyLevel,
    ItemValidityStatus,
    QuestionType,
)

from assessment.api.deps import get_catalog, get_exposure_store, get_progress_tracker
from assessment.core.assembly import AssemblyProgressTracker
from assessment.main import app
from assessment.models import Base
from assessment.models.domain import (
    Competency,
    Indicator,
    ItemStatistics,
    Question,
)
from assessment.providers import InMemoryCatalog


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips Sentry initialization and the progress-tracker shutdown hook.
    """
    yield


# Neutralize the production lifespan on the singleton app
app.router.lifespan_context = _test_lifespan


# In-memory SQLite shared across sessions through a single connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class CatalogBuilder:
    """Populates an ``InMemoryCatalog`` with small, readable fixtures."""

    def __init__(self, catalog: InMemoryCatalog):
        self.catalog = catalog

    def competency(
        self,
        name: str,
        onet_code: Optional[str] = None,
        esco_uri: Optional[str] = None,
        big_five_category: Optional[BigFiveTrait] = None,
        is_active: bool = True,
    ) -> Competency:
        return self.catalog.add_competency(
            Competency(
                id=uuid.uuid4(),
                name=name,
                onet_code=onet_code,
                esco_uri=esco_uri,
                big_five_category=big_five_category,
                is_active=is_active,
            )
        )

    def indicator(
        self,
        competency: Competency,
        title: Optional[str] = None,
        weight: float = 1.0,
        is_active: bool = True,
    ) -> Indicator:
        return self.catalog.add_indicator(
            Indicator(
                id=uuid.uuid4(),
                competency_id=competency.id,
                title=title or f"{competency.name} indicator",
                weight=weight,
                is_active=is_active,
            )
        )

    def question(
        self,
        indicator: Indicator,
        question_type: QuestionType = QuestionType.LIKERT,
        difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE,
        status: Optional[ItemValidityStatus] = None,
        discrimination: Optional[float] = None,
        exposure_count: int = 0,
        context_neutral: bool = True,
        is_active: bool = True,
    ) -> Question:
        question = Question(
            id=uuid.uuid4(),
            indicator_id=indicator.id,
            question_type=question_type,
            difficulty=difficulty,
            is_active=is_active,
            exposure_count=exposure_count,
            context_neutral=context_neutral,
        )
        statistics = None
        if status is not None or discrimination is not None:
            statistics = ItemStatistics(
                question_id=question.id,
                validity_status=status or ItemValidityStatus.ACTIVE,
                discrimination_index=discrimination,
            )
        return self.catalog.add_question(question, statistics)

    def questions(self, indicator: Indicator, count: int, **kwargs) -> List[Question]:
        return [self.question(indicator, **kwargs) for _ in range(count)]

    def competency_with_questions(
        self,
        name: str,
        indicators: int = 1,
        per_indicator: int = 3,
        **question_kwargs,
    ) -> Dict[str, object]:
        """A competency with ``indicators`` indicators of ``per_indicator`` questions each."""
        competency = self.competency(name)
        created = []
        for index in range(indicators):
            indicator = self.indicator(competency, title=f"{name} {index + 1}")
            created.append(
                (indicator, self.questions(indicator, per_indicator, **question_kwargs))
            )
        return {"competency": competency, "indicators": created}


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def builder(catalog) -> CatalogBuilder:
    return CatalogBuilder(catalog)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def progress_tracker():
    tracker = AssemblyProgressTracker(max_workers=1)
    yield tracker
    tracker.shutdown(wait=True)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(catalog, progress_tracker):
    """
    Test client whose providers are backed by the in-memory catalog.

    The catalog implements every provider protocol, so it stands in for both
    the SQL read catalog and the exposure store.
    """
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_exposure_store] = lambda: catalog
    app.dependency_overrides[get_progress_tracker] = lambda: progress_tracker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
