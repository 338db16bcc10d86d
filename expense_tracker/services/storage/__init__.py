"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
SQL (via SQLAlchemy) is the default backend; Google Sheets is the alternative.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    RecordOrder,
    StoreConnectionError,
    StoreError,
)
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
)
from expense_tracker.services.storage.sql import (
    SqlAuditStorage,
    SqlExpenseStore,
    create_sql_engine,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    "RecordOrder",
    # Exceptions
    "StoreConnectionError",
    "StoreError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    # SQL implementation
    "SqlAuditStorage",
    "SqlExpenseStore",
    "create_sql_engine",
]
