"""
Expense Actions

This module is the boundary between the UI and everything else. Each
action takes the caller's identity explicitly, does one job, and returns
a result model carrying either data or a plain error string.

DESIGN DECISION: Nothing raises past this layer.
- Form problems come back from the validator as a tagged result
- AuthenticationError becomes "User not found"
- StoreError becomes a generic database message
- AIUnavailableError becomes a friendly fallback (category, cards or text)

Every action opens a correlation id and is audited.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.agents import ExpenseInsightAgent
from expense_tracker.aggregation import bucket_by_day, compute_summary
from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.auth import UserSync, require_identity
from expense_tracker.config import get_settings
from expense_tracker.config.settings import AppSettings
from expense_tracker.errors import AIUnavailableError, AuthenticationError, StoreError
from expense_tracker.models.expense import (
    AIInsight,
    ExpenseCategory,
    ExpenseRecord,
    InsightType,
    UserAccount,
    UserIdentity,
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
from expense_tracker.services.storage import (
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    SqlAuditStorage,
    SqlExpenseStore,
    create_sql_engine,
)
from expense_tracker.utils.time import utcnow
from expense_tracker.validation import ExpenseFormValidator

logger = structlog.get_logger(__name__)

ADD_FAILED_MESSAGE = "An unexpected error occurred while adding the expense record."
DATABASE_ERROR_MESSAGE = "Database error"
RECORD_NOT_FOUND_MESSAGE = "Record not found"
RECORD_DELETED_MESSAGE = "Record deleted"
DESCRIPTION_TOO_SHORT_MESSAGE = "Description too short for AI analysis"
CATEGORY_UNAVAILABLE_MESSAGE = "Unable to suggest category at this time"
ANSWER_FALLBACK = (
    "I'm unable to provide a detailed answer at the moment. "
    "Please try refreshing the insights or check your connection."
)


def welcome_insights() -> list[AIInsight]:
    """Cards shown to a user with no recent expenses."""
    return [
        AIInsight(
            id="welcome-1",
            type=InsightType.INFO,
            title="Welcome to ExpenseTracker AI!",
            message=(
                "Start adding your expenses to get personalized AI insights "
                "about your spending patterns."
            ),
            action="Add your first expense",
            confidence=1.0,
        ),
        AIInsight(
            id="welcome-2",
            type=InsightType.TIP,
            title="Track Regularly",
            message=(
                "For best results, try to log expenses daily. "
                "This helps our AI provide more accurate insights."
            ),
            action="Set daily reminders",
            confidence=1.0,
        ),
    ]


def unavailable_insights() -> list[AIInsight]:
    """Single card shown when insights could not be produced."""
    return [
        AIInsight(
            id="error-1",
            type=InsightType.WARNING,
            title="Insights Temporarily Unavailable",
            message=(
                "We're having trouble analyzing your expenses right now. "
                "Please try again in a few minutes."
            ),
            action="Retry analysis",
            confidence=0.5,
        ),
    ]


def question_for_insight(insight: AIInsight) -> str:
    """The follow-up question an insight card's ask button sends."""
    return f"{insight.title}: {insight.action}" if insight.action else insight.title


class ExpenseActions:
    """
    All user-facing operations of the expense tracker.

    The agent is optional. Without one, AI actions return their fallbacks.
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        agent: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ExpenseFormValidator] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._agent = agent
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or get_settings().app
        self._validator = validator or ExpenseFormValidator(self._settings)
        self._users = UserSync(store, self._audit)
        self._clock = clock

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def add_expense_record(
        self,
        identity: Optional[UserIdentity],
        form: Mapping[str, Any],
    ) -> RecordResult:
        """
        Validate the add-expense form and store it for the signed-in user.

        The date is stored at 12:00 UTC on the chosen day.
        """
        correlation_id = create_correlation_id()
        owner_id = identity.external_id if identity else None

        validation = self._validator.validate(form)
        if not validation.ok:
            await self._audit.log_validation_failed(
                issues=[issue.model_dump() for issue in validation.issues],
                correlation_id=correlation_id,
                owner_id=owner_id,
            )
            return RecordResult(error=validation.error_message)

        try:
            identity = require_identity(identity)
        except AuthenticationError as e:
            await self._audit.log_authentication_failed("add_expense_record", correlation_id)
            return RecordResult(error=str(e))

        await self._audit.log_expense_submitted(identity.external_id, correlation_id)

        candidate = validation.candidate
        try:
            record = await self._store.create_record(
                owner_id=identity.external_id,
                description=candidate.description,
                amount=candidate.amount,
                category=candidate.category,
                occurred_on=candidate.occurred_on,
            )
        except StoreError as e:
            await self._audit.log_save_failed(identity.external_id, str(e), correlation_id)
            return RecordResult(error=ADD_FAILED_MESSAGE)

        await self._audit.log_expense_saved(
            record_id=record.id,
            owner_id=record.owner_id,
            amount=record.amount,
            category=record.category,
            correlation_id=correlation_id,
        )
        return RecordResult(data=record)

    async def delete_record(
        self,
        identity: Optional[UserIdentity],
        record_id: str,
    ) -> DeleteResult:
        """Delete one of the signed-in user's records."""
        correlation_id = create_correlation_id()
        try:
            identity = require_identity(identity)
        except AuthenticationError as e:
            await self._audit.log_authentication_failed("delete_record", correlation_id)
            return DeleteResult(error=str(e))

        try:
            deleted = await self._store.delete_record(identity.external_id, record_id)
        except StoreError as e:
            await self._audit.log_error("StoreError", str(e), {"action": "delete_record"}, correlation_id)
            return DeleteResult(error=DATABASE_ERROR_MESSAGE)

        if not deleted:
            return DeleteResult(error=RECORD_NOT_FOUND_MESSAGE)

        await self._audit.log_expense_deleted(record_id, identity.external_id, correlation_id)
        return DeleteResult(message=RECORD_DELETED_MESSAGE)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _list(
        self,
        identity: Optional[UserIdentity],
        purpose: str,
        correlation_id,
        **query,
    ) -> list[ExpenseRecord]:
        """Authenticated, audited store read. Raises the taxonomy errors."""
        try:
            identity = require_identity(identity)
        except AuthenticationError:
            await self._audit.log_authentication_failed(purpose, correlation_id)
            raise

        try:
            records = await self._store.list_by_owner(identity.external_id, **query)
        except StoreError as e:
            await self._audit.log_error("StoreError", str(e), {"action": purpose}, correlation_id)
            raise

        await self._audit.log_records_fetched(identity.external_id, purpose, len(records), correlation_id)
        return records

    async def get_records(self, identity: Optional[UserIdentity]) -> RecordsResult:
        """The user's most recent expenses by expense date."""
        correlation_id = create_correlation_id()
        try:
            records = await self._list(
                identity,
                "get_records",
                correlation_id,
                limit=self._settings.records_page_size,
                order_by="occurred_on",
            )
        except AuthenticationError as e:
            return RecordsResult(error=str(e))
        except StoreError:
            return RecordsResult(error=DATABASE_ERROR_MESSAGE)
        return RecordsResult(records=records)

    async def get_expense_statistics(self, identity: Optional[UserIdentity]) -> StatisticsResult:
        """Average per active day, highest and lowest expense."""
        correlation_id = create_correlation_id()
        since = None
        if self._settings.stats_window_days:
            since = self._clock() - timedelta(days=self._settings.stats_window_days)

        try:
            records = await self._list(identity, "get_expense_statistics", correlation_id, since=since)
        except AuthenticationError as e:
            return StatisticsResult(error=str(e))
        except StoreError:
            return StatisticsResult(error=DATABASE_ERROR_MESSAGE)

        summary = compute_summary(records)
        await self._audit.log_statistics_computed(identity.external_id, summary.active_days, correlation_id)
        return StatisticsResult(summary=summary)

    async def get_best_worst_expense(self, identity: Optional[UserIdentity]) -> ExpenseRangeResult:
        """Highest and lowest single expense over all records, 0/0 when none."""
        correlation_id = create_correlation_id()
        try:
            records = await self._list(identity, "get_best_worst_expense", correlation_id)
        except AuthenticationError as e:
            return ExpenseRangeResult(error=str(e))
        except StoreError:
            return ExpenseRangeResult(error=DATABASE_ERROR_MESSAGE)

        summary = compute_summary(records)
        return ExpenseRangeResult(best_expense=summary.max_amount, worst_expense=summary.min_amount)

    async def get_chart_buckets(self, identity: Optional[UserIdentity]) -> ChartResult:
        """Daily totals over the same records the history list shows."""
        result = await self.get_records(identity)
        if result.error:
            return ChartResult(error=result.error)
        return ChartResult(buckets=bucket_by_day(result.records))

    # -------------------------------------------------------------------------
    # AI
    # -------------------------------------------------------------------------

    async def suggest_category(self, description: Optional[str]) -> CategorySuggestionResult:
        """
        Ask the model for a category. Always returns a usable category.
        """
        correlation_id = create_correlation_id()
        text = (description or "").strip()
        if len(text) < self._settings.min_description_length:
            return CategorySuggestionResult(
                category=ExpenseCategory.OTHER.value,
                error=DESCRIPTION_TOO_SHORT_MESSAGE,
            )

        try:
            if self._agent is None:
                raise AIUnavailableError("No AI agent configured")
            category = await self._agent.suggest_category(text)
        except AIUnavailableError as e:
            await self._audit.log_external_service_error("gemini", str(e), correlation_id)
            await self._audit.log_category_suggested(ExpenseCategory.OTHER.value, True, correlation_id)
            return CategorySuggestionResult(
                category=ExpenseCategory.OTHER.value,
                error=CATEGORY_UNAVAILABLE_MESSAGE,
            )

        await self._audit.log_category_suggested(category, False, correlation_id)
        return CategorySuggestionResult(category=category)

    async def _recent_for_ai(self, identity, purpose: str, correlation_id) -> list[ExpenseRecord]:
        since = self._clock() - timedelta(days=self._settings.insight_window_days)
        return await self._list(
            identity,
            purpose,
            correlation_id,
            since=since,
            limit=self._settings.insight_record_limit,
            order_by="created_at",
        )

    async def get_ai_insights(self, identity: Optional[UserIdentity]) -> list[AIInsight]:
        """
        Insight cards over the last month of expenses.

        New users get welcome cards. Any failure yields one warning card.
        """
        correlation_id = create_correlation_id()
        try:
            records = await self._recent_for_ai(identity, "get_ai_insights", correlation_id)
            if not records:
                return welcome_insights()
            if self._agent is None:
                raise AIUnavailableError("No AI agent configured")
            insights = await self._agent.generate_insights(records)
        except (AuthenticationError, StoreError):
            return unavailable_insights()
        except AIUnavailableError as e:
            await self._audit.log_external_service_error("gemini", str(e), correlation_id)
            return unavailable_insights()

        await self._audit.log_insights_generated(
            identity.external_id, len(insights), len(records), correlation_id
        )
        return insights

    async def generate_insight_answer(
        self,
        identity: Optional[UserIdentity],
        question: str,
    ) -> str:
        """Answer a follow-up question about recent expenses, or a fallback line."""
        correlation_id = create_correlation_id()
        try:
            records = await self._recent_for_ai(identity, "generate_insight_answer", correlation_id)
            if self._agent is None:
                raise AIUnavailableError("No AI agent configured")
            answer = await self._agent.answer_question(question, records)
        except (AuthenticationError, StoreError):
            return ANSWER_FALLBACK
        except AIUnavailableError as e:
            await self._audit.log_external_service_error("gemini", str(e), correlation_id)
            return ANSWER_FALLBACK

        await self._audit.log_insight_answered(identity.external_id, question, len(records), correlation_id)
        return answer

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def check_user(self, identity: Optional[UserIdentity]) -> Optional[UserAccount]:
        """
        Local account for the signed-in user, created on first visit.

        None when signed out or when the store is unreachable.
        """
        correlation_id = create_correlation_id()
        try:
            return await self._users.check_user(identity, correlation_id)
        except StoreError as e:
            await self._audit.log_error("StoreError", str(e), {"action": "check_user"}, correlation_id)
            return None


def create_app_components(backend: Optional[str] = None) -> ExpenseActions:
    """
    Factory function to wire the actions to the configured backend.

    Args:
        backend: "sql" or "sheets"; defaults to STORAGE_BACKEND

    Returns:
        Ready-to-use ExpenseActions
    """
    settings = get_settings()
    backend = backend or settings.app.storage_backend

    if backend == "sheets":
        sheets_client = GoogleSheetsClient()
        store = GoogleSheetsExpenseStore(sheets_client)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    else:
        engine = create_sql_engine()
        store = SqlExpenseStore(engine)
        audit_logger = AuditLogger(SqlAuditStorage(engine))

    try:
        agent = ExpenseInsightAgent()
    except PydanticValidationError as e:
        # Gemini not configured - AI actions fall back
        logger.warning("ai_agent_unavailable", error=str(e))
        agent = None

    return ExpenseActions(store=store, agent=agent, audit_logger=audit_logger)
