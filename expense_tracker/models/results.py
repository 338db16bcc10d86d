"""
Action result models.

Actions never raise to the UI. Each one returns either its data or a
plain error string that the UI shows as a banner.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from expense_tracker.models.expense import (
    DailyBucket,
    ExpenseCategory,
    ExpenseRecord,
    StatisticsSummary,
)


class RecordResult(BaseModel):
    """Outcome of adding one expense."""

    data: Optional[ExpenseRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RecordsResult(BaseModel):
    """Outcome of listing the user's recent expenses."""

    records: list[ExpenseRecord] = Field(default_factory=list)
    error: Optional[str] = None


class DeleteResult(BaseModel):
    message: Optional[str] = None
    error: Optional[str] = None


class StatisticsResult(BaseModel):
    summary: Optional[StatisticsSummary] = None
    error: Optional[str] = None


class ExpenseRangeResult(BaseModel):
    """Highest and lowest single expense."""

    best_expense: Optional[Decimal] = None
    worst_expense: Optional[Decimal] = None
    error: Optional[str] = None


class ChartResult(BaseModel):
    buckets: list[DailyBucket] = Field(default_factory=list)
    error: Optional[str] = None


class CategorySuggestionResult(BaseModel):
    """
    AI category suggestion.

    The category is always usable; error explains why it is only the fallback.
    """

    category: str = ExpenseCategory.OTHER.value
    error: Optional[str] = None
