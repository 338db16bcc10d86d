"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, validators, aggregation)
2. Integration tests for actions (in-memory SQLite, stub AI agent)
3. No real API calls in tests
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models.expense import (
    AIInsight,
    ExpenseCategory,
    ExpenseRecord,
    FormValidation,
    InsightType,
    NewExpense,
    UserIdentity,
    ValidationIssue,
)
from expense_tracker.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_category_from_label_is_case_insensitive(self):
        assert ExpenseCategory.from_label("  food ") == ExpenseCategory.FOOD
        assert ExpenseCategory.from_label("HEALTHCARE") == ExpenseCategory.HEALTHCARE

    def test_category_from_unknown_label_is_other(self):
        assert ExpenseCategory.from_label("Groceries") == ExpenseCategory.OTHER
        assert ExpenseCategory.from_label(None) == ExpenseCategory.OTHER

    def test_record_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            ExpenseRecord(
                owner_id="user_1",
                description="Refund",
                amount=Decimal("-1"),
                occurred_on=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
            )

    def test_record_blank_category_becomes_other(self):
        record = ExpenseRecord(
            owner_id="user_1",
            description="Mystery",
            amount=Decimal("3"),
            category="",
            occurred_on=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
        )
        assert record.category == "Other"

    def test_record_normalizes_timestamps_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        record = ExpenseRecord(
            owner_id="user_1",
            description="Taxi",
            amount=Decimal("12"),
            occurred_on=datetime(2024, 1, 1, 1, 0, tzinfo=plus_two),
            created_at=datetime(2024, 1, 1, 9, 0),
        )
        assert record.occurred_on == datetime(2023, 12, 31, 23, 0, tzinfo=timezone.utc)
        assert record.created_at.tzinfo is not None

    def test_new_expense_strips_whitespace(self):
        expense = NewExpense(
            description="  Coffee  ",
            amount=Decimal("3.50"),
            category="Food",
            occurred_on=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
        )
        assert expense.description == "Coffee"

    def test_new_expense_rejects_amount_wider_than_column(self):
        with pytest.raises(ValueError):
            NewExpense(
                description="Yacht",
                amount=Decimal("12345678901.00"),
                category="Other",
                occurred_on=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
            )

    def test_identity_display_name(self):
        assert UserIdentity(external_id="u", first_name="Ada", last_name="Lovelace").display_name == "Ada Lovelace"
        assert UserIdentity(external_id="u").display_name == ""


class TestInsightModel:
    def test_unknown_type_becomes_info(self):
        insight = AIInsight(id="x", type="alarm", title="T", message="M")
        assert insight.type == InsightType.INFO

    def test_type_is_case_insensitive(self):
        assert AIInsight(id="x", type="WARNING", title="T", message="M").type == InsightType.WARNING

    def test_confidence_bounds(self):
        with pytest.raises(ValueError):
            AIInsight(id="x", title="T", message="M", confidence=1.5)


class TestFormValidationModel:
    def _issue(self, severity="error", message="bad"):
        return ValidationIssue(field="amount", issue_type="invalid_format", message=message, severity=severity)

    def test_failed_result_needs_an_error(self):
        with pytest.raises(ValueError):
            FormValidation(ok=False, issues=[self._issue(severity="warning")])

    def test_ok_result_needs_candidate(self):
        with pytest.raises(ValueError):
            FormValidation(ok=True)

    def test_error_message_is_first_error(self):
        result = FormValidation(
            ok=False,
            issues=[self._issue("warning", "w"), self._issue("error", "first"), self._issue("error", "second")],
        )
        assert result.error_message == "first"
        assert result.warnings == ["w"]

    def test_severity_pattern(self):
        with pytest.raises(ValueError):
            self._issue(severity="fatal")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            description="Expense saved",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECORDS_FETCHED,
            description="Test",
            details={"key": "value"},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "records_fetched"
        assert log_dict["details"] == {"key": "value"}

    def test_audit_event_row_matches_columns(self):
        event = AuditEventBuilder.expense_saved("rec-1", "user_1", "12.00", "Food", uuid4())
        row = event.to_row()
        assert len(row) == len(AUDIT_COLUMNS)
        assert row[AUDIT_COLUMNS.index("entity_id")] == "rec-1"
        assert row[AUDIT_COLUMNS.index("owner_id")] == "user_1"

    def test_audit_event_builder_validation_failed(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.validation_failed(
            issues=[{"field": "date", "message": "Invalid date format"}],
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.EXPENSE_VALIDATION_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id

    def test_category_fallback_is_a_warning(self):
        event = AuditEventBuilder.category_suggested("Other", True, uuid4())
        assert event.severity == AuditSeverity.WARNING
        assert event.details["used_fallback"] is True
