"""Tests for the expense form validator."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from expense_tracker.validation import (
    INVALID_AMOUNT_MESSAGE,
    INVALID_DATE_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    ExpenseFormValidator,
    parse_amount,
    parse_form_date,
)


@pytest.fixture
def validator(app_settings):
    return ExpenseFormValidator(app_settings)


def form(**overrides):
    data = {"text": "Groceries", "amount": "42.10", "category": "Food", "date": "2024-05-17"}
    data.update(overrides)
    return data


class TestPresence:
    @pytest.mark.parametrize("field", ["text", "amount", "category", "date"])
    def test_missing_field(self, validator, field):
        result = validator.validate(form(**{field: ""}))
        assert not result.ok
        assert result.error_message == MISSING_FIELDS_MESSAGE

    def test_absent_key(self, validator):
        data = form()
        del data["category"]
        assert validator.validate(data).error_message == MISSING_FIELDS_MESSAGE


class TestFormats:
    def test_valid_form_yields_candidate_at_noon_utc(self, validator):
        result = validator.validate(form())

        assert result.ok
        assert result.candidate.description == "Groceries"
        assert result.candidate.amount == Decimal("42.10")
        assert result.candidate.occurred_on == datetime(2024, 5, 17, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["17/05/2024", "2024-13-01", "yesterday"])
    def test_bad_date(self, validator, value):
        result = validator.validate(form(date=value))
        assert not result.ok
        assert result.error_message == INVALID_DATE_MESSAGE

    @pytest.mark.parametrize(
        "value",
        ["abc", "-5", "NaN", "1e30", "123456789012345678901234567", "10000000000"],
    )
    def test_bad_amount(self, validator, value):
        result = validator.validate(form(amount=value))
        assert result.error_message == INVALID_AMOUNT_MESSAGE

    def test_zero_amount_is_allowed(self, validator):
        assert validator.validate(form(amount="0")).ok

    def test_large_amount_is_a_warning(self, validator):
        result = validator.validate(form(amount="2000000"))
        assert result.ok
        assert result.warnings


class TestParsers:
    def test_amount_rounds_to_cents(self):
        assert parse_amount("3.005") == Decimal("3.01")
        assert parse_amount(12) == Decimal("12.00")

    def test_amount_rejects_bool(self):
        assert parse_amount(True) is None

    def test_amount_largest_storable(self):
        assert parse_amount("9999999999.99") == Decimal("9999999999.99")
        # Rounds up past what a 12-digit column holds
        assert parse_amount("9999999999.995") is None

    def test_date_object_accepted(self):
        assert parse_form_date(date(2024, 1, 2)) == datetime(2024, 1, 2, 12, tzinfo=timezone.utc)
