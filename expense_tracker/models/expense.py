"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are Decimal end to end. Floats only appear at the
chart boundary, where the plotting library wants them.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from expense_tracker.utils.time import ensure_utc, utcnow


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Categories offered by the expense form and the AI categorizer.

    Stored records keep whatever label they were saved with, so
    older or hand-entered categories still aggregate correctly.
    """
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "ExpenseCategory":
        """Case-insensitive lookup that falls back to OTHER."""
        if not label:
            return cls.OTHER
        wanted = label.strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        return cls.OTHER


class InsightType(str, Enum):
    """Visual kind of an insight card."""
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
    TIP = "tip"


# =============================================================================
# USERS
# =============================================================================

class UserIdentity(BaseModel):
    """
    What the hosted sign-in provider tells us about the current user.

    We never see passwords. The external_id is the provider's subject.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    external_id: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts)


class UserAccount(BaseModel):
    """Local mirror of a signed-in user, created on first visit."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    external_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# EXPENSES
# =============================================================================

class NewExpense(BaseModel):
    """
    A validated expense that has not been stored yet.

    Produced by the form validator, consumed by the record store.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category label"
    )
    occurred_on: datetime = Field(
        ...,
        description="When the expense happened (calendar date is what counts)"
    )

    @field_validator('occurred_on')
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ExpenseRecord(BaseModel):
    """
    One stored expense belonging to a user.

    Owned by the record store. Everything else only reads snapshots.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category: str = Field(default=ExpenseCategory.OTHER.value, max_length=50)
    occurred_on: datetime
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('occurred_on', 'created_at')
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v: Optional[str]) -> str:
        """Records saved without a category count as Other."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return ExpenseCategory.OTHER.value
        return v


# =============================================================================
# DERIVED AGGREGATES
# =============================================================================

class DailyBucket(BaseModel):
    """Per-calendar-day total. Built fresh for every chart, never stored."""
    model_config = ConfigDict(frozen=True)

    calendar_date: date
    total_amount: Decimal
    categories: list[str] = Field(
        default_factory=list,
        description="Distinct categories seen that day, in first-seen order"
    )


class StatisticsSummary(BaseModel):
    """
    Spending statistics over a snapshot of records.

    An empty snapshot yields zeros, not an error.
    """
    model_config = ConfigDict(frozen=True)

    average_per_active_day: Decimal = Decimal("0")
    max_amount: Decimal = Decimal("0")
    min_amount: Decimal = Decimal("0")
    active_days: int = Field(default=0, ge=0)
    total_amount: Decimal = Decimal("0")


# =============================================================================
# AI INSIGHTS
# =============================================================================

class AIInsight(BaseModel):
    """One insight card produced by the language model (or a fallback)."""

    id: str
    type: InsightType = InsightType.INFO
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    action: Optional[str] = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    @field_validator('type', mode='before')
    @classmethod
    def coerce_type(cls, v):
        """Models sometimes invent types; show those as info."""
        if isinstance(v, InsightType):
            return v
        try:
            return InsightType(str(v).lower())
        except ValueError:
            return InsightType.INFO


# =============================================================================
# FORM VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in submitted form data."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class FormValidation(BaseModel):
    """
    Tagged result of validating raw form input.

    Either ok with a candidate expense, or not ok with at least one error.
    """

    ok: bool
    candidate: Optional[NewExpense] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_tag(self) -> 'FormValidation':
        if self.ok and self.candidate is None:
            raise ValueError("A successful validation must carry a candidate")
        if not self.ok and not self.has_errors:
            raise ValueError("A failed validation must carry an error issue")
        return self

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_message(self) -> Optional[str]:
        """First error message, which is what the form banner shows."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
