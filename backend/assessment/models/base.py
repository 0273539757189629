"""
Database base configuration for SQLAlchemy models.

The engine is synchronous: scoring and selection are bounded CPU work that
read their inputs once per operation, so the API runs them in FastAPI's
threadpool with a plain ``Session``. SQLite URLs get
``check_same_thread=False`` so the same engine can serve those threads.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from assessment.core.config import settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with connect args appropriate for the dialect."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections are alive before using them
        connect_args=connect_args,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base class."""

    pass


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get a read-scoped database session.

    Yields a session and ensures proper cleanup. Writes (exposure increments)
    never go through this session; they open their own unit of work.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
