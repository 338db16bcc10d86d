"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an alternative backend because:
1. Non-technical users can view their expenses directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (every write is a single appended row)
- Limited query capabilities (we filter and sort in Python)

The implementation follows the abstract interface, so actions never
know which backend they are talking to.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_tracker.config import get_settings
from expense_tracker.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventType,
    AuditSeverity,
)
from expense_tracker.models.expense import ExpenseRecord, UserAccount
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    RecordOrder,
    StoreConnectionError,
    StoreError,
)
from expense_tracker.utils.time import ensure_utc, utcnow


# Column mappings for Records sheet
RECORD_COLUMNS = [
    "id",
    "owner_id",
    "description",
    "amount",
    "category",
    "occurred_on",
    "created_at",
]

# Column mappings for Users sheet
USER_COLUMNS = [
    "id",
    "external_id",
    "name",
    "email",
    "image_url",
    "created_at",
]

# Only API hiccups are worth retrying; bad data will fail the same way again.
sheets_retry = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates missing worksheets with headers.
    A spreadsheet object can be passed in directly (tests do this).
    """

    def __init__(self, spreadsheet: Any = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = None if spreadsheet is not None else get_settings().google_sheets

    @sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StoreConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except (ValueError, gspread.exceptions.GSpreadException) as e:
                raise StoreConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self):
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise StoreConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _sheet_name(self, attr: str, default: str) -> str:
        return getattr(self._settings, attr) if self._settings else default

    def _get_or_create(self, title: str, columns: list[str], rows: int):
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_records_sheet(self):
        """Get or create the Records worksheet."""
        name = self._sheet_name("records_sheet_name", "Records")
        return self._get_or_create(name, RECORD_COLUMNS, rows=1000)

    def get_users_sheet(self):
        """Get or create the Users worksheet."""
        name = self._sheet_name("users_sheet_name", "Users")
        return self._get_or_create(name, USER_COLUMNS, rows=200)

    def get_audit_sheet(self):
        """Get or create the Audit worksheet."""
        name = self._sheet_name("audit_sheet_name", "AuditLog")
        # More rows for audit log
        return self._get_or_create(name, AUDIT_COLUMNS, rows=5000)


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsExpenseStore(ExpenseStoreInterface):
    """
    Google Sheets implementation of the record store.

    One expense per row in the Records sheet, one user per row in Users.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: ExpenseRecord) -> list:
        return [
            record.id,
            record.owner_id,
            record.description,
            str(record.amount),
            record.category,
            record.occurred_on.isoformat(),
            record.created_at.isoformat(),
        ]

    def _row_to_record(self, row: list) -> ExpenseRecord:
        return ExpenseRecord(
            id=_safe_get(row, 0),
            owner_id=_safe_get(row, 1),
            description=_safe_get(row, 2),
            amount=Decimal(_safe_get(row, 3, "0")).quantize(Decimal("0.01")),
            category=_safe_get(row, 4) or None,
            occurred_on=datetime.fromisoformat(_safe_get(row, 5)),
            created_at=datetime.fromisoformat(_safe_get(row, 6)),
        )

    @sheets_retry
    def _append(self, sheet, row: list) -> None:
        sheet.append_row(row, value_input_option="RAW")

    @sheets_retry
    def _read_rows(self, sheet) -> list[list]:
        # Skip header
        return sheet.get_all_values()[1:]

    async def create_record(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: str,
        occurred_on: datetime,
    ) -> ExpenseRecord:
        """Append one expense row."""
        record = ExpenseRecord(
            id=str(uuid4()),
            owner_id=owner_id,
            description=description,
            amount=amount,
            category=category,
            occurred_on=occurred_on,
            created_at=utcnow(),
        )
        try:
            self._append(self._client.get_records_sheet(), self._record_to_row(record))
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to save record: {e}")
        return record

    async def list_by_owner(
        self,
        owner_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        order_by: RecordOrder = "occurred_on",
    ) -> list[ExpenseRecord]:
        """List one user's records, newest first."""
        try:
            rows = self._read_rows(self._client.get_records_sheet())
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to list records: {e}")

        since_utc = ensure_utc(since) if since is not None else None
        records = []
        for row in rows:
            if not row or not row[0] or _safe_get(row, 1) != owner_id:
                continue
            try:
                record = self._row_to_record(row)
            except (ValueError, InvalidOperation):
                continue  # Skip malformed rows
            if since_utc is not None and record.created_at < since_utc:
                continue
            records.append(record)

        records.sort(key=lambda r: (getattr(r, order_by), r.id), reverse=True)
        return records if limit is None else records[:limit]

    async def delete_record(self, owner_id: str, record_id: str) -> bool:
        """Delete a record row if it belongs to the owner."""
        try:
            sheet = self._client.get_records_sheet()
            all_rows = sheet.get_all_values()

            # Row 1 is the header
            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == record_id and _safe_get(row, 1) == owner_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to delete record: {e}")

    async def get_user_by_external_id(self, external_id: str) -> Optional[UserAccount]:
        try:
            rows = self._read_rows(self._client.get_users_sheet())
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to get user: {e}")

        for row in rows:
            if row and _safe_get(row, 1) == external_id:
                return UserAccount(
                    id=_safe_get(row, 0),
                    external_id=_safe_get(row, 1),
                    name=_safe_get(row, 2) or None,
                    email=_safe_get(row, 3) or None,
                    image_url=_safe_get(row, 4) or None,
                    created_at=ensure_utc(datetime.fromisoformat(_safe_get(row, 5))),
                )
        return None

    async def create_user(self, user: UserAccount) -> UserAccount:
        row = [
            user.id,
            user.external_id,
            user.name or "",
            user.email or "",
            user.image_url or "",
            user.created_at.isoformat(),
        ]
        try:
            self._append(self._client.get_users_sheet(), row)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to create user: {e}")
        return user


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=ensure_utc(datetime.fromisoformat(_safe_get(row, 1))),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=_safe_get(row, 5) or None,
            owner_id=_safe_get(row, 6) or None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    @sheets_retry
    def _append(self, sheet, row: list) -> None:
        sheet.append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append(self._client.get_audit_sheet(), event.to_row())
            return True
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to write audit event: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
        owner_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            if owner_id is not None and _safe_get(row, 6) != owner_id:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, json.JSONDecodeError):
                continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
