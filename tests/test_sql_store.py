"""Tests for the SQLAlchemy record store (in-memory SQLite)."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.expense import UserAccount
from expense_tracker.services.storage import StoreError


def noon(y, m, d):
    return datetime(y, m, d, 12, tzinfo=timezone.utc)


class TestSqlExpenseStore:
    async def test_create_and_list(self, sql_store):
        created = await sql_store.create_record("user_1", "Coffee", Decimal("3.50"), "Food", noon(2024, 1, 2))
        records = await sql_store.list_by_owner("user_1")

        assert [r.id for r in records] == [created.id]
        assert records[0].amount == Decimal("3.50")
        assert records[0].occurred_on == noon(2024, 1, 2)
        assert records[0].occurred_on.tzinfo is not None

    async def test_list_is_owner_scoped(self, sql_store):
        await sql_store.create_record("user_1", "Mine", Decimal("1"), "Food", noon(2024, 1, 1))
        await sql_store.create_record("user_2", "Theirs", Decimal("2"), "Food", noon(2024, 1, 1))

        records = await sql_store.list_by_owner("user_1")
        assert [r.description for r in records] == ["Mine"]

    async def test_newest_first_with_limit(self, sql_store):
        for day in (3, 1, 5, 2):
            await sql_store.create_record("user_1", f"day {day}", Decimal(day), "Food", noon(2024, 1, day))

        records = await sql_store.list_by_owner("user_1", limit=3)
        assert [r.occurred_on.day for r in records] == [5, 3, 2]

    async def test_since_filters_on_created_at(self, sql_store):
        await sql_store.create_record("user_1", "Old date, new row", Decimal("1"), "Food", noon(2020, 1, 1))

        recent = await sql_store.list_by_owner(
            "user_1",
            since=datetime.now(timezone.utc) - timedelta(days=1),
            order_by="created_at",
        )
        future = await sql_store.list_by_owner("user_1", since=datetime.now(timezone.utc) + timedelta(days=1))

        assert len(recent) == 1
        assert future == []

    async def test_delete_is_owner_scoped(self, sql_store):
        record = await sql_store.create_record("user_1", "Coffee", Decimal("3"), "Food", noon(2024, 1, 2))

        assert await sql_store.delete_record("user_2", record.id) is False
        assert await sql_store.delete_record("user_1", record.id) is True
        assert await sql_store.list_by_owner("user_1") == []

    async def test_users(self, sql_store):
        assert await sql_store.get_user_by_external_id("ext-1") is None

        created = await sql_store.create_user(UserAccount(external_id="ext-1", name="Ada Lovelace"))
        found = await sql_store.get_user_by_external_id("ext-1")

        assert found.id == created.id
        assert found.name == "Ada Lovelace"

    async def test_duplicate_user_raises_store_error(self, sql_store):
        await sql_store.create_user(UserAccount(external_id="ext-1"))
        with pytest.raises(StoreError):
            await sql_store.create_user(UserAccount(external_id="ext-1"))


class TestSqlAuditStorage:
    async def test_append_and_read_back(self, sql_audit):
        event = AuditEventBuilder.records_fetched("user_1", "get_records", 3, correlation_id=None)
        assert await sql_audit.append_event(event)

        events = await sql_audit.get_recent_events(owner_id="user_1")
        assert len(events) == 1
        assert events[0].event_id == event.event_id
        assert events[0].details == {"purpose": "get_records", "result_count": 3}
