# src/marketplace_api/db/time.py
"""Timestamp helpers shared by models and presenters."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Column default for created/updated timestamps."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to timestamps read back without zone information.

    SQLite stores `DateTime(timezone=True)` columns as naive text, so rows read
    from it lose their offset even though they were written in UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
