"""Base declarative class for SQLAlchemy models."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Numeric, String
from sqlalchemy.orm import DeclarativeBase

# UUIDs are stored as canonical strings so the schema runs on MySQL and SQLite alike.
ID_TYPE = String(36)
MONEY = Numeric(10, 2)
# Two-place kilograms times a two-place rate needs four places to be stored exactly.
WAGE = Numeric(14, 4)


def new_id() -> str:
    """Return a fresh primary key value."""

    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""

    pass
