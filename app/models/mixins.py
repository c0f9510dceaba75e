"""Shared model helpers."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Return the current UTC time.

    Returns
    -------
    datetime
        Timezone-aware current time.
    """
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime on every backend.

    Values are stored as UTC. Naive values read back (SQLite keeps no offset)
    are tagged as UTC, and naive values written are assumed to be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimestampMixin:
    """Common timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)


def id_column() -> Mapped[int]:
    """Return an auto-incrementing integer primary-key column.

    Returns
    -------
    Mapped[int]
        SQLAlchemy mapped integer column.
    """
    return mapped_column(Integer, primary_key=True, autoincrement=True)
