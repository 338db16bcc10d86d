"""Form validation package."""

from expense_tracker.validation.validator import (
    INVALID_AMOUNT_MESSAGE,
    INVALID_DATE_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    ExpenseFormValidator,
    parse_amount,
    parse_form_date,
)

__all__ = [
    "ExpenseFormValidator",
    "INVALID_AMOUNT_MESSAGE",
    "INVALID_DATE_MESSAGE",
    "MISSING_FIELDS_MESSAGE",
    "parse_amount",
    "parse_form_date",
]
