from __future__ import annotations

import datetime as dt

UTC = dt.timezone.utc


def utcnow() -> dt.datetime:
    return dt.datetime.now(UTC)


def ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def noon_utc(day: dt.date) -> dt.datetime:
    """Anchor a calendar date at 12:00 UTC so every timezone reads the same day."""
    return dt.datetime(day.year, day.month, day.day, 12, 0, 0, tzinfo=UTC)
