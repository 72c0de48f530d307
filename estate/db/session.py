"""Opinionated SQLAlchemy session helpers."""
from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .engine import get_shared_engine


def get_sessionmaker(engine: Engine | None = None) -> sessionmaker:
    """Return a ``sessionmaker`` bound to ``engine`` or the shared engine."""

    return sessionmaker(
        bind=engine or get_shared_engine(), autoflush=False, expire_on_commit=False
    )
