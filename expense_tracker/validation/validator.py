"""
Expense Form Validation

DESIGN DECISION: Raw form input is validated once, at the boundary,
in two distinct stages:

STAGE 1 - PRESENCE:
- All four fields (text, amount, category, date) must be present
- Any missing field fails the whole form with a single message

STAGE 2 - FORMAT AND SANITY:
- Amount must parse as a non-negative number that fits in 12 digits
  (rounded to cents)
- Date must be YYYY-MM-DD and is anchored at 12:00 UTC
- Unusually large amounts produce a warning, not an error

IMPORTANT: Validation never raises. It returns a tagged FormValidation
that either carries a NewExpense candidate or the issues found.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from expense_tracker.config import get_settings
from expense_tracker.config.settings import AppSettings
from expense_tracker.models.expense import FormValidation, NewExpense, ValidationIssue
from expense_tracker.utils.time import ensure_utc, noon_utc

MISSING_FIELDS_MESSAGE = "Text, amount, category, or date is missing"
INVALID_DATE_MESSAGE = "Invalid date format"
INVALID_AMOUNT_MESSAGE = "Invalid amount"

FORM_FIELDS = ("text", "amount", "category", "date")
CENTS = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds
MAX_STORABLE_AMOUNT = Decimal("9999999999.99")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a form amount into cents, or None when it is not a usable number."""
    if isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if amount > MAX_STORABLE_AMOUNT:
        return None
    return amount


def parse_form_date(value: Any) -> Optional[dt.datetime]:
    """
    Turn a form date into the stored timestamp.

    Strings must be YYYY-MM-DD. The calendar date is anchored at noon UTC
    so every viewer's timezone still reads the same day.
    """
    if isinstance(value, dt.datetime):
        return noon_utc(ensure_utc(value).date())
    if isinstance(value, dt.date):
        return noon_utc(value)
    try:
        day = dt.datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        return None
    return noon_utc(day)


class ExpenseFormValidator:
    """Validates the add-expense form into a NewExpense candidate."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _check_presence(self, form: Mapping[str, Any]) -> list[ValidationIssue]:
        missing = [name for name in FORM_FIELDS if _is_blank(form.get(name))]
        if not missing:
            return []
        return [ValidationIssue(
            field=",".join(missing),
            issue_type="missing",
            message=MISSING_FIELDS_MESSAGE,
            severity="error",
        )]

    def validate(self, form: Mapping[str, Any]) -> FormValidation:
        """
        Run both stages over raw form data.

        Args:
            form: Mapping with text, amount, category and date entries

        Returns:
            FormValidation, ok with a candidate or not ok with issues
        """
        issues = self._check_presence(form)
        if issues:
            return FormValidation(ok=False, issues=issues)

        text = str(form["text"]).strip()
        category = str(form["category"]).strip()

        amount = parse_amount(form["amount"])
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=INVALID_AMOUNT_MESSAGE,
                severity="error",
            ))

        occurred_on = parse_form_date(form["date"])
        if occurred_on is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=INVALID_DATE_MESSAGE,
                severity="error",
            ))

        if len(text) > 500:
            issues.append(ValidationIssue(
                field="text",
                issue_type="too_long",
                message="Description must be 500 characters or fewer",
                severity="error",
            ))
        if len(category) > 50:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message="Category must be 50 characters or fewer",
                severity="error",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if amount is not None and amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (${amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        if any(issue.severity == "error" for issue in issues):
            return FormValidation(ok=False, issues=issues)

        candidate = NewExpense(
            description=text,
            amount=amount,
            category=category,
            occurred_on=occurred_on,
        )
        return FormValidation(ok=True, candidate=candidate, issues=issues)
