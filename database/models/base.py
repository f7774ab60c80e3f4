"""
Database Models Base

Shared SQLAlchemy base and time/id helpers for all model modules.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import declarative_base

# Shared declarative base for all models
Base = declarative_base()


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read back from the store to aware UTC.

    SQLite drops tzinfo on round trip; naive values are stored as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_id() -> str:
    """Opaque primary key."""
    return str(uuid.uuid4())


__all__ = [
    'Base',
    'utcnow',
    'as_utc',
    'new_id',
]
