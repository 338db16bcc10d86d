"""
SQL Storage Implementation

DESIGN DECISION: The default record store is a relational database
reached through the SQLAlchemy ORM. SQLite works out of the box; any
SQLAlchemy URL (PostgreSQL, MySQL) works by setting DATABASE_URL.

Tables are created with metadata.create_all. There are no migrations.
"""

from __future__ import annotations

import datetime as dt
import json
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    Index,
    Numeric,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import DateTime as _DateTime
from sqlalchemy.types import TypeDecorator

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from expense_tracker.models.expense import ExpenseRecord, UserAccount
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    RecordOrder,
    StoreConnectionError,
    StoreError,
)
from expense_tracker.utils.time import UTC, utcnow


class UTCDateTime(TypeDecorator):
    """
    Store datetimes as naive UTC and always return tz-aware UTC datetimes.

    SQLite has no timezone-aware datetime type, so naive values are
    treated as UTC on the way in and tagged as UTC on the way out.
    """

    impl = _DateTime
    cache_ok = True

    def process_bind_param(self, value: dt.datetime | None, dialect):
        if value is None:
            return None
        v = value
        if v.tzinfo is None:
            v = v.replace(tzinfo=UTC)
        return v.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: dt.datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    external_id: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(320))
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)


class RecordRow(Base):
    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_owner_occurred", "owner_id", "occurred_on"),
        Index("ix_records_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # owner_id holds the sign-in provider subject, same as UserRow.external_id
    owner_id: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="Other")
    occurred_on: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)


class AuditRow(Base):
    __tablename__ = "audit_events"

    event_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    timestamp: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(String(64))
    owner_id: Mapped[Optional[str]] = mapped_column(String(200), index=True)
    correlation_id: Mapped[Optional[str]] = mapped_column(String(36))
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    details_json: Mapped[Optional[str]] = mapped_column(Text)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    is_user_action: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


def create_sql_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Build an engine for the configured database and create missing tables.

    In-memory SQLite gets a single shared connection so every session
    sees the same database.
    """
    if url is None or echo is None:
        db_settings = get_settings().database
        url = url or db_settings.url
        echo = db_settings.echo if echo is None else echo

    parsed = make_url(url)
    kwargs: dict = {"future": True, "echo": echo}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    try:
        engine = create_engine(url, **kwargs)
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StoreConnectionError(f"Failed to connect to database: {e}")
    return engine


def _record_from_row(row: RecordRow) -> ExpenseRecord:
    return ExpenseRecord(
        id=row.id,
        owner_id=row.owner_id,
        description=row.description,
        amount=Decimal(row.amount).quantize(Decimal("0.01")),
        category=row.category,
        occurred_on=row.occurred_on,
        created_at=row.created_at,
    )


def _user_from_row(row: UserRow) -> UserAccount:
    return UserAccount(
        id=row.id,
        external_id=row.external_id,
        name=row.name,
        email=row.email,
        image_url=row.image_url,
        created_at=row.created_at,
    )


class SqlExpenseStore(ExpenseStoreInterface):
    """
    SQLAlchemy implementation of the record store.

    Each call runs in its own short session.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or create_sql_engine()
        self._sessions = sessionmaker(
            bind=self._engine, class_=Session, autoflush=False, expire_on_commit=False
        )

    async def create_record(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: str,
        occurred_on: dt.datetime,
    ) -> ExpenseRecord:
        """Insert one expense and return it as stored."""
        row = RecordRow(
            id=str(uuid4()),
            owner_id=owner_id,
            description=description,
            amount=amount,
            category=category,
            occurred_on=occurred_on,
            created_at=utcnow(),
        )
        try:
            with self._sessions.begin() as session:
                session.add(row)
            return _record_from_row(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save record: {e}")

    async def list_by_owner(
        self,
        owner_id: str,
        since: Optional[dt.datetime] = None,
        limit: Optional[int] = None,
        order_by: RecordOrder = "occurred_on",
    ) -> list[ExpenseRecord]:
        """List one user's records, newest first."""
        order_column = RecordRow.created_at if order_by == "created_at" else RecordRow.occurred_on
        stmt = select(RecordRow).where(RecordRow.owner_id == owner_id)
        if since is not None:
            stmt = stmt.where(RecordRow.created_at >= since)
        stmt = stmt.order_by(order_column.desc(), RecordRow.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            with self._sessions() as session:
                return [_record_from_row(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list records: {e}")

    async def delete_record(self, owner_id: str, record_id: str) -> bool:
        """Delete a record if it belongs to the owner."""
        stmt = delete(RecordRow).where(
            RecordRow.id == record_id,
            RecordRow.owner_id == owner_id,
        )
        try:
            with self._sessions.begin() as session:
                deleted = session.execute(stmt).rowcount
            return deleted > 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete record: {e}")

    async def get_user_by_external_id(self, external_id: str) -> Optional[UserAccount]:
        stmt = select(UserRow).where(UserRow.external_id == external_id)
        try:
            with self._sessions() as session:
                row = session.scalars(stmt).first()
                return _user_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to get user: {e}")

    async def create_user(self, user: UserAccount) -> UserAccount:
        row = UserRow(
            id=user.id,
            external_id=user.external_id,
            name=user.name,
            email=user.email,
            image_url=user.image_url,
            created_at=user.created_at,
        )
        try:
            with self._sessions.begin() as session:
                session.add(row)
            return _user_from_row(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create user: {e}")


class SqlAuditStorage(AuditStorageInterface):
    """
    SQLAlchemy implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or create_sql_engine()
        self._sessions = sessionmaker(bind=self._engine, class_=Session, autoflush=False)

    async def append_event(self, event: AuditEvent) -> bool:
        row = AuditRow(
            event_id=str(event.event_id),
            timestamp=event.timestamp,
            event_type=event.event_type.value,
            severity=event.severity.value,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            owner_id=event.owner_id,
            correlation_id=str(event.correlation_id) if event.correlation_id else None,
            description=event.description,
            details_json=json.dumps(event.details, default=str) if event.details else None,
            error_message=event.error_message,
            is_user_action=event.is_user_action,
        )
        try:
            with self._sessions.begin() as session:
                session.add(row)
            return True
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write audit event: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
        owner_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        stmt = select(AuditRow)
        if owner_id is not None:
            stmt = stmt.where(AuditRow.owner_id == owner_id)
        stmt = stmt.order_by(AuditRow.timestamp.desc()).limit(limit)

        try:
            with self._sessions() as session:
                rows = list(session.scalars(stmt))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to get audit events: {e}")

        return [
            AuditEvent(
                event_id=UUID(row.event_id),
                timestamp=row.timestamp,
                event_type=AuditEventType(row.event_type),
                severity=AuditSeverity(row.severity),
                entity_type=row.entity_type,
                entity_id=row.entity_id,
                owner_id=row.owner_id,
                correlation_id=UUID(row.correlation_id) if row.correlation_id else None,
                description=row.description,
                details=json.loads(row.details_json) if row.details_json else {},
                error_message=row.error_message,
                is_user_action=row.is_user_action,
            )
            for row in rows
        ]
