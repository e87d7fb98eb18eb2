"""Database engine and session helpers for the SQL storage backend."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from momo_relay.models.base import Base


def _engine_kwargs(database_url: str) -> dict[str, object]:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {}


def create_db_engine(database_url: str) -> Engine:
    """Create a synchronous SQLAlchemy engine for ``database_url``."""

    return create_engine(database_url, future=True, echo=False, **_engine_kwargs(database_url))


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``."""

    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


def create_all(engine: Engine) -> None:
    """Create all tables using the shared declarative metadata."""

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "create_all", "create_db_engine", "make_sessionmaker"]
