"""
Integration tests for the action layer.

Actions run against in-memory SQLite and a stub AI agent. They must
never raise; every failure comes back as a message.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import StubAgent

from expense_tracker.actions import (
    ADD_FAILED_MESSAGE,
    ANSWER_FALLBACK,
    CATEGORY_UNAVAILABLE_MESSAGE,
    DATABASE_ERROR_MESSAGE,
    DESCRIPTION_TOO_SHORT_MESSAGE,
    ExpenseActions,
    question_for_insight,
)
from expense_tracker.audit import AuditLogger
from expense_tracker.errors import StoreError
from expense_tracker.models.audit import AuditEventBuilder, AuditEventType
from expense_tracker.models.expense import AIInsight
from expense_tracker.services.storage import ExpenseStoreInterface


class BrokenStore(ExpenseStoreInterface):
    """Every call fails the way an unreachable database would."""

    async def create_record(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def list_by_owner(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def delete_record(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def get_user_by_external_id(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def create_user(self, *args, **kwargs):
        raise StoreError("connection refused")


@pytest.fixture
def broken_actions(stub_agent, app_settings):
    return ExpenseActions(store=BrokenStore(), agent=stub_agent, settings=app_settings)


def form(text="Groceries", amount="25.00", category="Food", date="2024-05-17"):
    return {"text": text, "amount": amount, "category": category, "date": date}


class TestAddExpenseRecord:
    async def test_adds_record_at_noon_utc(self, actions, identity):
        result = await actions.add_expense_record(identity, form())

        assert result.ok
        assert result.data.owner_id == "user_1"
        assert result.data.amount == Decimal("25.00")
        assert result.data.occurred_on == datetime(2024, 5, 17, 12, tzinfo=timezone.utc)

    async def test_missing_field(self, actions, identity):
        result = await actions.add_expense_record(identity, form(category=""))
        assert result.error == "Text, amount, category, or date is missing"

    async def test_invalid_date(self, actions, identity):
        result = await actions.add_expense_record(identity, form(date="not-a-date"))
        assert result.error == "Invalid date format"

    async def test_huge_amount_is_invalid(self, actions, identity, sql_store):
        result = await actions.add_expense_record(
            identity, form(amount="123456789012345678901234567")
        )
        assert result.error == "Invalid amount"
        assert await sql_store.list_by_owner("user_1") == []

    async def test_signed_out(self, actions):
        result = await actions.add_expense_record(None, form())
        assert result.error == "User not found"

    async def test_validation_runs_before_authentication(self, actions):
        result = await actions.add_expense_record(None, form(text=""))
        assert result.error == "Text, amount, category, or date is missing"

    async def test_store_failure(self, broken_actions, identity):
        result = await broken_actions.add_expense_record(identity, form())
        assert result.error == ADD_FAILED_MESSAGE

    async def test_save_is_audited(self, actions, identity, sql_audit):
        await actions.add_expense_record(identity, form())

        types = {e.event_type for e in await sql_audit.get_recent_events()}
        assert AuditEventType.EXPENSE_SUBMITTED in types
        assert AuditEventType.EXPENSE_SAVED in types


class TestReads:
    async def _add(self, actions, identity, amount, day, category="Food"):
        result = await actions.add_expense_record(
            identity, form(amount=str(amount), date=f"2024-05-{day:02d}", category=category)
        )
        assert result.ok

    async def test_get_records_latest_ten_by_date(self, actions, identity):
        for day in range(1, 13):
            await self._add(actions, identity, day, day)

        result = await actions.get_records(identity)
        assert len(result.records) == 10
        assert result.records[0].occurred_on.day == 12
        assert result.records[-1].occurred_on.day == 3

    async def test_get_records_signed_out(self, actions):
        assert (await actions.get_records(None)).error == "User not found"

    async def test_get_records_database_error(self, broken_actions, identity):
        assert (await broken_actions.get_records(identity)).error == DATABASE_ERROR_MESSAGE

    async def test_statistics(self, actions, identity):
        await self._add(actions, identity, 10, 1)
        await self._add(actions, identity, 30, 1)
        await self._add(actions, identity, 20, 2)

        summary = (await actions.get_expense_statistics(identity)).summary
        assert summary.average_per_active_day == Decimal("30")
        assert summary.max_amount == Decimal("30")
        assert summary.min_amount == Decimal("10")
        assert summary.active_days == 2

    async def test_statistics_empty(self, actions, identity):
        summary = (await actions.get_expense_statistics(identity)).summary
        assert summary.average_per_active_day == summary.max_amount == summary.min_amount == 0

    async def test_best_worst(self, actions, identity):
        await self._add(actions, identity, "4.50", 1)
        await self._add(actions, identity, "99.99", 2)

        result = await actions.get_best_worst_expense(identity)
        assert result.best_expense == Decimal("99.99")
        assert result.worst_expense == Decimal("4.50")

    async def test_best_worst_empty_is_zero(self, actions, identity):
        result = await actions.get_best_worst_expense(identity)
        assert result.best_expense == 0
        assert result.worst_expense == 0
        assert result.error is None

    async def test_chart_buckets(self, actions, identity):
        await self._add(actions, identity, 10, 3, "Food")
        await self._add(actions, identity, 5, 3, "Bills")
        await self._add(actions, identity, 7, 1)

        buckets = (await actions.get_chart_buckets(identity)).buckets
        assert [b.calendar_date.day for b in buckets] == [1, 3]
        assert buckets[1].total_amount == Decimal("15.00")
        assert sorted(buckets[1].categories) == ["Bills", "Food"]

    async def test_chart_buckets_signed_out(self, actions):
        assert (await actions.get_chart_buckets(None)).error == "User not found"

    async def test_delete_record(self, actions, identity):
        added = await actions.add_expense_record(identity, form())

        assert (await actions.delete_record(identity, added.data.id)).message == "Record deleted"
        assert (await actions.delete_record(identity, added.data.id)).error == "Record not found"
        assert (await actions.get_records(identity)).records == []


class TestSuggestCategory:
    async def test_suggestion(self, actions, stub_agent):
        result = await actions.suggest_category("  Uber to airport ")

        assert result.category == "Food"
        assert result.error is None
        assert stub_agent.calls == [("suggest_category", "Uber to airport")]

    async def test_too_short(self, actions, stub_agent):
        result = await actions.suggest_category(" a ")

        assert result.category == "Other"
        assert result.error == DESCRIPTION_TOO_SHORT_MESSAGE
        assert stub_agent.calls == []

    async def test_ai_failure(self, sql_store, app_settings):
        actions = ExpenseActions(store=sql_store, agent=StubAgent(fail=True), settings=app_settings)
        result = await actions.suggest_category("Coffee")

        assert result.category == "Other"
        assert result.error == CATEGORY_UNAVAILABLE_MESSAGE

    async def test_no_agent_configured(self, sql_store, app_settings):
        actions = ExpenseActions(store=sql_store, agent=None, settings=app_settings)
        assert (await actions.suggest_category("Coffee")).error == CATEGORY_UNAVAILABLE_MESSAGE


class TestInsights:
    async def test_welcome_cards_for_new_user(self, actions, identity, stub_agent):
        insights = await actions.get_ai_insights(identity)

        assert [i.id for i in insights] == ["welcome-1", "welcome-2"]
        assert insights[0].title == "Welcome to ExpenseTracker AI!"
        assert all(i.confidence == 1.0 for i in insights)
        assert stub_agent.calls == []

    async def test_insights_from_agent(self, actions, identity, stub_agent):
        await actions.add_expense_record(identity, form())

        insights = await actions.get_ai_insights(identity)
        assert insights == stub_agent.insights
        assert len(stub_agent.calls[0][1]) == 1

    async def test_fallback_card_on_failure(self, sql_store, app_settings, identity):
        actions = ExpenseActions(store=sql_store, agent=StubAgent(fail=True), settings=app_settings)
        await actions.add_expense_record(identity, form())

        insights = await actions.get_ai_insights(identity)
        assert len(insights) == 1
        assert insights[0].id == "error-1"
        assert insights[0].title == "Insights Temporarily Unavailable"
        assert insights[0].confidence == 0.5

    async def test_fallback_card_when_signed_out(self, actions):
        assert [i.id for i in await actions.get_ai_insights(None)] == ["error-1"]

    async def test_answer(self, actions, identity, stub_agent):
        await actions.add_expense_record(identity, form())

        answer = await actions.generate_insight_answer(identity, "Food is up: Cook at home")
        assert answer == stub_agent.answer
        assert stub_agent.calls[-1][1] == "Food is up: Cook at home"

    async def test_answer_fallback(self, broken_actions, identity):
        assert await broken_actions.generate_insight_answer(identity, "Why?") == ANSWER_FALLBACK

    def test_question_for_insight(self):
        insight = AIInsight(id="x", title="Food is up", message="m", action="Cook at home")
        assert question_for_insight(insight) == "Food is up: Cook at home"


class TestCheckUser:
    async def test_creates_then_finds(self, actions, identity, sql_audit):
        first = await actions.check_user(identity)
        second = await actions.check_user(identity)

        assert first.id == second.id
        assert first.name == "Ada Lovelace"
        assert first.email == "ada@example.com"
        created = [e for e in await sql_audit.get_recent_events() if e.event_type == AuditEventType.USER_CREATED]
        assert len(created) == 1

    async def test_signed_out(self, actions):
        assert await actions.check_user(None) is None

    async def test_store_failure(self, broken_actions, identity):
        assert await broken_actions.check_user(identity) is None


class TestAuditResilience:
    async def test_audit_storage_failure_does_not_break_action(self, sql_store, app_settings, identity):
        class FailingAudit:
            async def append_event(self, event):
                raise StoreError("audit sheet unavailable")

        actions = ExpenseActions(
            store=sql_store,
            agent=StubAgent(),
            audit_logger=AuditLogger(FailingAudit()),
            settings=app_settings,
        )
        assert (await actions.add_expense_record(identity, form())).ok

    async def test_log_without_storage_reports_success(self):
        event = AuditEventBuilder.system_error(error_type="StoreError", error_message="boom")
        assert await AuditLogger().log(event) is True
