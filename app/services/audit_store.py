"""Audit log persistence, search, and retention."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.audit import STATUSES, AuditLog
from app.models.mixins import utcnow
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageRequest:
    """One-based page request.

    Attributes
    ----------
    page : int
        Requested page number.
    page_size : int
        Requested page size.
    """

    page: int = 1
    page_size: int = 0

    def normalized(self, *, default: int, maximum: int) -> PageRequest:
        """Clamp the request into the configured bounds.

        Parameters
        ----------
        default : int
            Page size used for non-positive requests.
        maximum : int
            Largest allowed page size.

        Returns
        -------
        PageRequest
            Request with ``page >= 1`` and ``1 <= page_size <= maximum``.
        """
        page = self.page if self.page > 0 else 1
        page_size = self.page_size if self.page_size > 0 else default
        return PageRequest(page=page, page_size=min(page_size, maximum))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True, slots=True)
class AuditSearchCriteria:
    """Filter dimensions for audit search. Unset fields are ignored.

    Attributes
    ----------
    user_id : int | None
        Exact actor id.
    username : str | None
        Case-insensitive substring of the actor's name.
    action : str | None
        Exact action code.
    resource_type : str | None
        Exact resource type.
    resource_id : str | None
        Exact resource id.
    status : str | None
        ``success`` or ``failed``.
    ip_address : str | None
        Exact caller IP.
    start_time : datetime | None
        Inclusive lower bound on creation time.
    end_time : datetime | None
        Inclusive upper bound on creation time.
    search : str | None
        Substring matched against description or request path.
    """

    user_id: int | None = None
    username: str | None = None
    action: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    status: str | None = None
    ip_address: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    search: str | None = None

    def validate(self) -> None:
        """Reject malformed filters.

        Returns
        -------
        None
            Raises ``ValidationError`` on an unknown status or inverted range.
        """
        if self.status and self.status not in STATUSES:
            raise ValidationError(f"Unknown audit status: {self.status}")
        if (
            self.start_time is not None
            and self.end_time is not None
            and _as_utc(self.start_time) > _as_utc(self.end_time)
        ):
            raise ValidationError("start_time must not be after end_time")


@dataclass(frozen=True, slots=True)
class RetentionResult:
    """Outcome of a retention cleanup."""

    cutoff: datetime
    deleted: int


class AuditStore:
    """Append-only audit log repository.

    Every call runs in its own session from ``session_factory`` so that audit
    writes commit independently of the caller's business transaction.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for short-lived sessions.
    default_page_size : int, default=10
        Page size used when a request omits one.
    max_page_size : int, default=100
        Upper bound on page sizes.
    clock : Callable[[], datetime], default=utcnow
        Source of creation and cutoff timestamps.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_page_size: int = 10,
        max_page_size: int = 100,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self._clock = clock

    def normalize_page(self, page: PageRequest) -> PageRequest:
        """Apply the configured page-size bounds."""
        return page.normalized(
            default=self.default_page_size, maximum=self.max_page_size
        )

    async def create(self, record: AuditLog) -> AuditLog:
        """Persist one audit record.

        Parameters
        ----------
        record : AuditLog
            Unsaved record. ``created_at`` is assigned here.

        Returns
        -------
        AuditLog
            Persisted record with ``id`` and ``created_at`` set.
        """
        missing = [
            name
            for name in ("user_id", "action", "resource_type")
            if getattr(record, name) in (None, "")
        ]
        if missing:
            raise PersistenceError(
                f"Audit record is missing required fields: {', '.join(missing)}"
            )

        record.created_at = self._clock()
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to create audit log") from exc
        return record

    async def get_by_id(self, audit_id: int) -> AuditLog:
        """Return one record.

        Parameters
        ----------
        audit_id : int
            Record identifier.

        Returns
        -------
        AuditLog
            Matching record.
        """
        try:
            async with self._session_factory() as session:
                record = await session.get(AuditLog, audit_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "Failed to load audit log", context={"audit_id": audit_id}
            ) from exc
        if record is None:
            raise NotFoundError(f"Audit log {audit_id} not found")
        return record

    async def search(
        self, criteria: AuditSearchCriteria, page: PageRequest
    ) -> tuple[list[AuditLog], int]:
        """Search records newest first.

        Parameters
        ----------
        criteria : AuditSearchCriteria
            ANDed filters.
        page : PageRequest
            Requested page; normalized against the configured bounds.

        Returns
        -------
        tuple[list[AuditLog], int]
            The requested page of records and the total match count.
        """
        criteria.validate()
        page = self.normalize_page(page)

        count_query = _apply_filters(
            select(func.count(AuditLog.id)).select_from(AuditLog), criteria
        )
        rows_query = (
            _apply_filters(select(AuditLog), criteria)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(page.offset)
            .limit(page.page_size)
        )
        try:
            async with self._session_factory() as session:
                total = (await session.execute(count_query)).scalar_one()
                rows = list((await session.execute(rows_query)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to search audit logs") from exc
        return rows, total

    async def get_by_actor(
        self, user_id: int, page: PageRequest
    ) -> tuple[list[AuditLog], int]:
        """Search records performed by one actor."""
        return await self.search(AuditSearchCriteria(user_id=user_id), page)

    async def get_by_resource(
        self, resource_type: str, resource_id: str, page: PageRequest
    ) -> tuple[list[AuditLog], int]:
        """Search records that target one resource."""
        return await self.search(
            AuditSearchCriteria(resource_type=resource_type, resource_id=resource_id),
            page,
        )

    async def delete_older_than(self, retention_days: int) -> RetentionResult:
        """Delete every record created strictly before ``now - retention_days``.

        Parameters
        ----------
        retention_days : int
            Positive number of days to keep.

        Returns
        -------
        RetentionResult
            Cutoff used and number of rows deleted.
        """
        if (
            isinstance(retention_days, bool)
            or not isinstance(retention_days, int)
            or retention_days <= 0
        ):
            raise ValidationError("Retention days must be a positive integer")

        cutoff = self._clock() - timedelta(days=retention_days)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(AuditLog)
                        .where(AuditLog.created_at < cutoff)
                        .execution_options(synchronize_session=False)
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                "Failed to clean up audit logs",
                context={"retention_days": retention_days},
            ) from exc

        deleted = result.rowcount or 0
        logger.info(
            "Cleaned up old audit logs",
            extra={"retention_days": retention_days, "deleted": deleted},
        )
        return RetentionResult(cutoff=cutoff, deleted=deleted)


def _apply_filters(query: Select, criteria: AuditSearchCriteria) -> Select:
    """Attach the WHERE clauses (and the user join) for ``criteria``."""
    if criteria.user_id is not None:
        query = query.where(AuditLog.user_id == criteria.user_id)
    if criteria.username:
        pattern = _contains_pattern(criteria.username)
        query = query.outerjoin(User, User.id == AuditLog.user_id).where(
            or_(
                AuditLog.username.ilike(pattern, escape="\\"),
                User.username.ilike(pattern, escape="\\"),
            )
        )
    if criteria.action:
        query = query.where(AuditLog.action == criteria.action)
    if criteria.resource_type:
        query = query.where(AuditLog.resource_type == criteria.resource_type)
    if criteria.resource_id:
        query = query.where(AuditLog.resource_id == criteria.resource_id)
    if criteria.status:
        query = query.where(AuditLog.status == criteria.status)
    if criteria.ip_address:
        query = query.where(AuditLog.ip_address == criteria.ip_address)
    if criteria.start_time is not None:
        query = query.where(AuditLog.created_at >= _as_utc(criteria.start_time))
    if criteria.end_time is not None:
        query = query.where(AuditLog.created_at <= _as_utc(criteria.end_time))
    if criteria.search:
        pattern = _contains_pattern(criteria.search)
        query = query.where(
            or_(
                AuditLog.description.ilike(pattern, escape="\\"),
                AuditLog.path.ilike(pattern, escape="\\"),
            )
        )
    return query


def _contains_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
