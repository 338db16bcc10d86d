"""
Data Models Package

This package contains all Pydantic models used in Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    AIInsight,
    DailyBucket,
    ExpenseCategory,
    ExpenseRecord,
    FormValidation,
    InsightType,
    NewExpense,
    StatisticsSummary,
    UserAccount,
    UserIdentity,
    ValidationIssue,
)
from expense_tracker.models.results import (
    CategorySuggestionResult,
    ChartResult,
    DeleteResult,
    ExpenseRangeResult,
    RecordResult,
    RecordsResult,
    StatisticsResult,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "AIInsight",
    "DailyBucket",
    "ExpenseCategory",
    "ExpenseRecord",
    "FormValidation",
    "InsightType",
    "NewExpense",
    "StatisticsSummary",
    "UserAccount",
    "UserIdentity",
    "ValidationIssue",
    # Action results
    "CategorySuggestionResult",
    "ChartResult",
    "DeleteResult",
    "ExpenseRangeResult",
    "RecordResult",
    "RecordsResult",
    "StatisticsResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
