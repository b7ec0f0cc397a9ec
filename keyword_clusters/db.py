"""Database configuration and session utilities."""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Base(DeclarativeBase):
    """Base declarative class for SQLAlchemy models."""


def _resolve_sqlite_url(database_url: str) -> str:
    """Make file-backed SQLite URLs absolute and ensure their directory exists."""

    url = make_url(database_url)
    database_path = url.database
    if not database_path or database_path == ":memory:":
        return database_url
    if database_path.startswith("file:"):
        database_path = database_path.replace("file:", "", 1)

    resolved = Path(database_path).expanduser()
    if not resolved.is_absolute():
        resolved = PROJECT_ROOT / resolved
    resolved = resolved.resolve(strict=False)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return url.set(database=resolved.as_posix()).render_as_string(hide_password=False)


def build_engine(database_url: str) -> Engine:
    connect_args: dict[str, Any] = {}
    if make_url(database_url).drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        database_url = _resolve_sqlite_url(database_url)
    logger.debug("Creating database engine for %s", make_url(database_url).render_as_string())
    return create_engine(database_url, connect_args=connect_args)


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/app.db")
engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def init_db() -> None:
    """Create all tables."""
    # Import models within the function to avoid circular imports.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session."""
    with session_scope() as session:
        yield session
