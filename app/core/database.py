from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    """
    SQLite (local runs and the test suite) needs the connection shared across
    threads; an in-memory database must also live on a single connection.
    """
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    str(settings.database_url),
    future=True,
    **_engine_options(str(settings.database_url)),
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Context manager for running queries outside of a request.

    Usage:
        with session_scope() as db:
            db.query(...)

    Used by the live draft channel, whose lookups run after the request
    dependency scope has been entered, and by the seed script.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
