"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the record store.
This allows us to:
1. Run on a relational database (SQLAlchemy) or on Google Sheets
2. Use in-memory SQLite for testing
3. Keep actions and aggregation decoupled from storage

The interface is intentionally small - just the operations the
actions need. Every failure surfaces as StoreError.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from expense_tracker.errors import StoreConnectionError, StoreError
from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import ExpenseRecord, UserAccount

RecordOrder = Literal["occurred_on", "created_at"]


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense record storage.

    Any storage implementation (SQL, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create_record(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: str,
        occurred_on: datetime,
    ) -> ExpenseRecord:
        """
        Persist a new expense.

        Returns:
            The stored record, with its id and created_at filled in

        Raises:
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        order_by: RecordOrder = "occurred_on",
    ) -> list[ExpenseRecord]:
        """
        List one user's records, newest first.

        Args:
            owner_id: Whose records to return
            since: Only records created at or after this instant
            limit: Maximum number of records
            order_by: Which timestamp "newest" refers to

        Raises:
            StoreError: If the read fails
        """
        pass

    @abstractmethod
    async def delete_record(self, owner_id: str, record_id: str) -> bool:
        """
        Delete one of the owner's records.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def get_user_by_external_id(self, external_id: str) -> Optional[UserAccount]:
        """Look up the local account for a sign-in provider subject."""
        pass

    @abstractmethod
    async def create_user(self, user: UserAccount) -> UserAccount:
        """Store a new local account."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        owner_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


__all__ = [
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    "RecordOrder",
    "StoreConnectionError",
    "StoreError",
]
