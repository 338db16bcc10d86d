"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their interactions

The audit logger:
- Is async to match the actions that call it
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the JSON log lines to stdout at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured (SQL table or Sheets tab)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_submitted(
        self,
        owner_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_submitted(owner_id, correlation_id))

    async def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: UUID,
        owner_id: Optional[str] = None,
    ) -> None:
        """Log a rejected expense form."""
        event = AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
            owner_id=owner_id,
        )
        await self.log(event)

    async def log_expense_saved(
        self,
        record_id: str,
        owner_id: str,
        amount: Decimal,
        category: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.expense_saved(
            record_id=record_id,
            owner_id=owner_id,
            amount=f"{amount:.2f}",
            category=category,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_deleted(
        self,
        record_id: str,
        owner_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(record_id, owner_id, correlation_id))

    async def log_save_failed(
        self,
        owner_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(owner_id, error_message, correlation_id))

    async def log_records_fetched(
        self,
        owner_id: str,
        purpose: str,
        result_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.records_fetched(
            owner_id=owner_id,
            purpose=purpose,
            result_count=result_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statistics_computed(
        self,
        owner_id: str,
        active_days: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.statistics_computed(owner_id, active_days, correlation_id))

    async def log_category_suggested(
        self,
        category: str,
        used_fallback: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.category_suggested(category, used_fallback, correlation_id))

    async def log_insights_generated(
        self,
        owner_id: str,
        insight_count: int,
        record_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.insights_generated(
            owner_id=owner_id,
            insight_count=insight_count,
            record_count=record_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_insight_answered(
        self,
        owner_id: str,
        question: str,
        record_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.insight_answered(
            owner_id=owner_id,
            question=question,
            record_count=record_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_user_created(
        self,
        user_id: str,
        external_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.user_created(user_id, external_id, correlation_id))

    async def log_authentication_failed(
        self,
        action: str,
        correlation_id: UUID,
    ) -> None:
        """Log an action attempted without a signed-in user."""
        await self.log(AuditEventBuilder.authentication_failed(action, correlation_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
