"""
Audit Models for Expense Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every add, delete and AI request
2. Debugging information when things go wrong
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.utils.time import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense lifecycle
    EXPENSE_SUBMITTED = "expense_submitted"
    EXPENSE_VALIDATION_FAILED = "expense_validation_failed"
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_DELETED = "expense_deleted"
    SAVE_FAILED = "save_failed"

    # Reads
    RECORDS_FETCHED = "records_fetched"
    STATISTICS_COMPUTED = "statistics_computed"

    # AI requests
    CATEGORY_SUGGESTED = "category_suggested"
    INSIGHTS_GENERATED = "insights_generated"
    INSIGHT_ANSWERED = "insight_answered"

    # Identity
    USER_CREATED = "user_created"
    AUTHENTICATION_FAILED = "authentication_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "owner_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'user', 'insight')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    owner_id: Optional[str] = Field(
        default=None,
        description="User the event belongs to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one form submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "owner_id": self.owner_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list:
        """
        Convert to a flat row, in AUDIT_COLUMNS order.
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.owner_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(record_id, owner_id, amount, category, cid)
        event = AuditEventBuilder.authentication_failed("add_expense_record", cid)
    """

    @staticmethod
    def expense_submitted(
        owner_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SUBMITTED,
            entity_type="record",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Expense form submitted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: UUID,
        owner_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Expense form rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def expense_saved(
        record_id: str,
        owner_id: str,
        amount: str,
        category: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="record",
            entity_id=record_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Expense saved: {category} - ${amount}",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def expense_deleted(
        record_id: str,
        owner_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="record",
            entity_id=record_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        owner_id: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="record",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Expense could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def records_fetched(
        owner_id: str,
        purpose: str,
        result_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_FETCHED,
            severity=AuditSeverity.DEBUG,
            entity_type="record",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Fetched {result_count} records for {purpose}",
            details={
                "purpose": purpose,
                "result_count": result_count,
            },
        )

    @staticmethod
    def statistics_computed(
        owner_id: str,
        active_days: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATISTICS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Statistics computed over {active_days} active days",
            details={"active_days": active_days},
        )

    @staticmethod
    def category_suggested(
        category: str,
        used_fallback: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_SUGGESTED,
            severity=AuditSeverity.WARNING if used_fallback else AuditSeverity.INFO,
            entity_type="category",
            correlation_id=correlation_id,
            description=f"Category suggested: {category}",
            details={
                "category": category,
                "used_fallback": used_fallback,
            },
            is_user_action=True,
        )

    @staticmethod
    def insights_generated(
        owner_id: str,
        insight_count: int,
        record_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="insight",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Generated {insight_count} insights from {record_count} records",
            details={
                "insight_count": insight_count,
                "record_count": record_count,
            },
        )

    @staticmethod
    def insight_answered(
        owner_id: str,
        question: str,
        record_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_ANSWERED,
            entity_type="insight",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Answered an insight question",
            details={
                "question": question[:200],
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_created(
        user_id: str,
        external_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            owner_id=user_id,
            correlation_id=correlation_id,
            description="Local user account created on first sign-in",
            details={"external_id": external_id},
        )

    @staticmethod
    def authentication_failed(
        action: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"No signed-in user for {action}",
            details={"action": action},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
