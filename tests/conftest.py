"""
Shared fixtures.

No real services are called: the database is in-memory SQLite, the
spreadsheet is a fake, and the AI is a stub agent.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import gspread
import pytest

from expense_tracker.actions import ExpenseActions
from expense_tracker.audit import AuditLogger
from expense_tracker.config.settings import AppSettings
from expense_tracker.errors import AIUnavailableError
from expense_tracker.models.expense import AIInsight, ExpenseRecord, UserIdentity
from expense_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    SqlAuditStorage,
    SqlExpenseStore,
    create_sql_engine,
)


def make_record(
    amount,
    day: date,
    category: str = "Food",
    hour: int = 12,
    description: str = "Lunch",
    owner_id: str = "user_1",
) -> ExpenseRecord:
    return ExpenseRecord(
        owner_id=owner_id,
        description=description,
        amount=Decimal(str(amount)),
        category=category,
        occurred_on=datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc),
    )


class StubAgent:
    """Stands in for the Gemini agent and records what it was asked."""

    def __init__(
        self,
        category: str = "Food",
        insights: Optional[list[AIInsight]] = None,
        answer: str = "You spent most on food.",
        fail: bool = False,
    ):
        self.category = category
        self.insights = insights or [
            AIInsight(id="ai-1", type="warning", title="Food is up", message="Food spend rose.", action="Cook at home"),
        ]
        self.answer = answer
        self.fail = fail
        self.calls: list[tuple] = []

    async def suggest_category(self, description):
        self.calls.append(("suggest_category", description))
        if self.fail:
            raise AIUnavailableError("stub failure")
        return self.category

    async def generate_insights(self, records):
        self.calls.append(("generate_insights", list(records)))
        if self.fail:
            raise AIUnavailableError("stub failure")
        return self.insights

    async def answer_question(self, question, records):
        self.calls.append(("answer_question", question, list(records)))
        if self.fail:
            raise AIUnavailableError("stub failure")
        return self.answer


class FakeWorksheet:
    """In-memory worksheet with the gspread methods the store uses."""

    def __init__(self, title: str):
        self.title = title
        self.rows: list[list] = []

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(v) for v in row])

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def delete_rows(self, index):
        # gspread rows are 1-based
        del self.rows[index - 1]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets: dict[str, FakeWorksheet] = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet(title)
        return self.sheets[title]


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(
        external_id="user_1",
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        image_url="https://example.com/ada.png",
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(_env_file=None)


@pytest.fixture
def engine():
    return create_sql_engine(url="sqlite://", echo=False)


@pytest.fixture
def sql_store(engine) -> SqlExpenseStore:
    return SqlExpenseStore(engine)


@pytest.fixture
def sql_audit(engine) -> SqlAuditStorage:
    return SqlAuditStorage(engine)


@pytest.fixture
def spreadsheet() -> FakeSpreadsheet:
    return FakeSpreadsheet()


@pytest.fixture
def sheets_store(spreadsheet) -> GoogleSheetsExpenseStore:
    return GoogleSheetsExpenseStore(GoogleSheetsClient(spreadsheet=spreadsheet))


@pytest.fixture
def sheets_audit(spreadsheet) -> GoogleSheetsAuditStorage:
    return GoogleSheetsAuditStorage(GoogleSheetsClient(spreadsheet=spreadsheet))


@pytest.fixture
def stub_agent() -> StubAgent:
    return StubAgent()


@pytest.fixture
def actions(sql_store, sql_audit, stub_agent, app_settings) -> ExpenseActions:
    return ExpenseActions(
        store=sql_store,
        agent=stub_agent,
        audit_logger=AuditLogger(sql_audit),
        settings=app_settings,
    )


@pytest.fixture
def today() -> date:
    return datetime.now(timezone.utc).date()


@pytest.fixture
def yesterday(today) -> date:
    return today - timedelta(days=1)
