"""
Expense aggregation.

Turns a snapshot of expense records into per-day buckets for the chart
and into the summary statistics card. Everything here is pure: no storage,
no network, and the same input always gives the same output.

Calendar dates are taken in UTC. A record stored at 23:30 UTC belongs to
that UTC day whatever timezone the reader sits in.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Sequence

from expense_tracker.models.expense import DailyBucket, ExpenseRecord, StatisticsSummary
from expense_tracker.utils.time import ensure_utc

ZERO = Decimal("0")


def calendar_date(value: date | datetime) -> date:
    """Year/month/day of a stored timestamp, read in UTC."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def _amount(record: ExpenseRecord) -> Decimal:
    amount = record.amount
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def bucket_by_day(records: Iterable[ExpenseRecord]) -> list[DailyBucket]:
    """
    Group records by UTC calendar date, oldest day first.

    Each bucket carries the day's total and the distinct categories seen,
    in the order they first appeared.
    """
    totals: dict[date, Decimal] = {}
    categories: dict[date, OrderedDict[str, None]] = {}

    for record in records:
        day = calendar_date(record.occurred_on)
        totals[day] = totals.get(day, ZERO) + _amount(record)
        categories.setdefault(day, OrderedDict())[record.category] = None

    return [
        DailyBucket(
            calendar_date=day,
            total_amount=totals[day],
            categories=list(categories[day]),
        )
        for day in sorted(totals)
    ]


def compute_summary(records: Sequence[ExpenseRecord]) -> StatisticsSummary:
    """
    Average spend per active day plus the highest and lowest single expense.

    The caller picks the time window. With no records every figure is 0,
    which is also what a brand-new user sees.
    """
    if not records:
        return StatisticsSummary()

    amounts = [_amount(record) for record in records]
    active_days = {calendar_date(record.occurred_on) for record in records}
    total = sum(amounts, ZERO)

    return StatisticsSummary(
        average_per_active_day=total / max(len(active_days), 1),
        max_amount=max(amounts),
        min_amount=min(amounts),
        active_days=len(active_days),
        total_amount=total,
    )
