"""
Shared column helpers for the ORM models.

- ``utc_now``: timezone-aware default for timestamp columns.
- ``reference_list_column``: a JSON array of identifiers (stored as strings)
  whose in-place ``append``/``remove`` calls are tracked by the session.
- ``serialize_datetime``: ISO 8601 rendering used by every ``to_dict``.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def reference_list_column():
    return mapped_column(MutableList.as_mutable(JSON), nullable=False, default=list)


def serialize_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive values; everything is written in UTC.
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
