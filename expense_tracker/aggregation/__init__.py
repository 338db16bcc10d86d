"""Expense aggregation package."""

from expense_tracker.aggregation.aggregator import (
    bucket_by_day,
    calendar_date,
    compute_summary,
)

__all__ = ["bucket_by_day", "calendar_date", "compute_summary"]
