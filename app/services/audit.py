"""Audit recording service."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from pydantic_core import PydanticSerializationError, to_json
from starlette.requests import Request

from app.exceptions import PersistenceError, SerializationError
from app.models.audit import STATUS_FAILED, STATUS_SUCCESS, AuditLog
from app.services.audit_store import AuditStore
from app.services.diff import diff

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Actor:
    """Identity responsible for an action.

    Attributes
    ----------
    user_id : int
        Actor identifier.
    username : str
        Display name at the time of the action.
    """

    user_id: int
    username: str


class CaptureState(enum.Enum):
    """Whether a captured field holds data."""

    PRESENT = "present"
    ABSENT = "absent"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class Capture:
    """Serialized snapshot or change-set with its capture state."""

    state: CaptureState
    text: str | None = None

    @classmethod
    def absent(cls) -> Capture:
        return cls(CaptureState.ABSENT)

    @classmethod
    def unavailable(cls) -> Capture:
        return cls(CaptureState.UNAVAILABLE)


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Request metadata attached to an audit record."""

    method: str | None = None
    path: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> RequestContext:
        """Extract method, path, caller IP, and user agent.

        Parameters
        ----------
        request : Request
            Incoming Starlette request.

        Returns
        -------
        RequestContext
            Populated request context.
        """
        return cls(
            method=request.method,
            path=request.url.path,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )


def client_ip(request: Request) -> str | None:
    """Return the originating client address.

    Parameters
    ----------
    request : Request
        Incoming Starlette request.

    Returns
    -------
    str | None
        First ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def serialize(value: Any) -> str:
    """Encode a snapshot or change-set as JSON text.

    Parameters
    ----------
    value : Any
        Dataclass, pydantic model, mapping, sequence, or scalar.

    Returns
    -------
    str
        JSON text.
    """
    try:
        return to_json(value).decode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"Cannot serialize {type(value).__name__}: {exc}"
        ) from exc


def capture(value: Any, *, field: str) -> Capture:
    """Serialize leniently; failures are logged and marked unavailable.

    Parameters
    ----------
    value : Any
        Value to serialize, or ``None`` when not provided.
    field : str
        Record column the value is destined for, used in logs.

    Returns
    -------
    Capture
        ``ABSENT`` for ``None``, ``UNAVAILABLE`` on failure, else ``PRESENT``.
    """
    if value is None:
        return Capture.absent()
    try:
        return Capture(CaptureState.PRESENT, serialize(value))
    except SerializationError as exc:
        logger.warning("Audit %s not captured: %s", field, exc.message)
        return Capture.unavailable()


class AuditRecorder:
    """Build audit records and write them through the store.

    Parameters
    ----------
    store : AuditStore
        Destination store.
    failures_fatal : bool, default=True
        Raise ``PersistenceError`` to the caller when the write fails. When
        false, the failure is logged and ``None`` is returned.
    """

    def __init__(self, store: AuditStore, *, failures_fatal: bool = True) -> None:
        self._store = store
        self.failures_fatal = failures_fatal

    async def log_action(
        self,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str,
        description: str,
        before: Any = None,
        after: Any = None,
    ) -> AuditLog | None:
        """Record a successful action with optional before/after snapshots.

        Parameters
        ----------
        actor : Actor
            Acting identity.
        action : str
            Verb code.
        resource_type : str
            Logical entity name.
        resource_id : str
            Target identifier.
        description : str
            Human-readable narrative.
        before : Any, default=None
            State prior to the action.
        after : Any, default=None
            State after the action.

        Returns
        -------
        AuditLog | None
            Persisted record, or ``None`` when a non-fatal write failed.
        """
        return await self._log_action(
            actor,
            action,
            resource_type,
            resource_id,
            description,
            before,
            after,
            RequestContext(),
        )

    async def log_action_with_context(
        self,
        request: Request,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str,
        description: str,
        before: Any = None,
        after: Any = None,
    ) -> AuditLog | None:
        """Record a successful action, including request metadata."""
        return await self._log_action(
            actor,
            action,
            resource_type,
            resource_id,
            description,
            before,
            after,
            RequestContext.from_request(request),
        )

    async def log_error(
        self,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str,
        error: BaseException | str,
        duration_ms: int | None = None,
    ) -> AuditLog | None:
        """Record a failed action.

        Parameters
        ----------
        actor : Actor
            Acting identity.
        action : str
            Verb code.
        resource_type : str
            Logical entity name.
        resource_id : str
            Target identifier.
        error : BaseException | str
            Failure cause; its message is stored.
        duration_ms : int | None, default=None
            Time spent before failing.

        Returns
        -------
        AuditLog | None
            Persisted record, or ``None`` when a non-fatal write failed.
        """
        record = AuditLog(
            user_id=actor.user_id,
            username=actor.username,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            status=STATUS_FAILED,
            error_message=str(error),
            duration_ms=duration_ms,
        )
        return await self._persist(record)

    async def _log_action(
        self,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str,
        description: str,
        before: Any,
        after: Any,
        context: RequestContext,
    ) -> AuditLog | None:
        old_values = capture(before, field="old_values")
        new_values = capture(after, field="new_values")
        both_present = (
            old_values.state is CaptureState.PRESENT
            and new_values.state is CaptureState.PRESENT
        )
        if both_present:
            changes = capture(diff(before, after), field="changes")
        elif CaptureState.UNAVAILABLE in (old_values.state, new_values.state):
            changes = Capture.unavailable()
        else:
            changes = Capture.absent()

        unavailable = [
            name
            for name, captured in (
                ("old_values", old_values),
                ("new_values", new_values),
                ("changes", changes),
            )
            if captured.state is CaptureState.UNAVAILABLE
        ]
        record = AuditLog(
            user_id=actor.user_id,
            username=actor.username,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            method=context.method,
            path=context.path,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            old_values=old_values.text,
            new_values=new_values.text,
            changes=changes.text,
            unavailable_fields=",".join(unavailable) or None,
            status=STATUS_SUCCESS,
        )
        return await self._persist(record)

    async def _persist(self, record: AuditLog) -> AuditLog | None:
        context = {
            "user_id": record.user_id,
            "action": record.action,
            "resource_type": record.resource_type,
            "resource_id": record.resource_id,
        }
        try:
            return await self._store.create(record)
        except PersistenceError as exc:
            logger.error("Failed to create audit log", exc_info=exc, extra=context)
            if self.failures_fatal:
                raise PersistenceError(
                    exc.message, context={**exc.context, **context}
                ) from (exc.__cause__ or exc)
            return None
