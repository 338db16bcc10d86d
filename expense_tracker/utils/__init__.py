"""Shared helpers."""

from expense_tracker.utils.time import UTC, ensure_utc, noon_utc, utcnow

__all__ = ["UTC", "ensure_utc", "noon_utc", "utcnow"]
