"""
SQLAlchemy declarative base and metadata.
Challenge: Single place for table definitions and migrations.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """Primary keys are UUID strings so ids stay opaque to clients."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models. Enables Alembic migrations."""

    pass


def utcnow() -> datetime:
    """Python-side timestamp default so rows carry values right after flush."""
    return datetime.now(timezone.utc)
