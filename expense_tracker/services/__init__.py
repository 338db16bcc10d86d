"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    SqlAuditStorage,
    SqlExpenseStore,
    StoreConnectionError,
    StoreError,
    create_sql_engine,
)

__all__ = [
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    "SqlAuditStorage",
    "SqlExpenseStore",
    "StoreConnectionError",
    "StoreError",
    "create_sql_engine",
]
