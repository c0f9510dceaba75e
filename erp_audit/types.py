"""SDK response types."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any


def parse_datetime(value: str) -> datetime:
    """Parse an ISO datetime string.

    Parameters
    ----------
    value : str
        ISO-formatted datetime string.

    Returns
    -------
    datetime
        Parsed datetime.
    """
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One audit record as returned by the API.

    Attributes
    ----------
    id : int
        Record identifier.
    user_id : int
        Actor identifier.
    username : str | None
        Actor name at the time of the action.
    action : str
        Verb code.
    resource_type : str
        Logical entity name.
    resource_id : str | None
        Target identifier.
    status : str
        ``success`` or ``failed``.
    created_at : datetime
        Creation timestamp.
    description : str | None
        Narrative.
    changes : str | None
        Serialized change-set.
    old_values : str | None
        Serialized before snapshot.
    new_values : str | None
        Serialized after snapshot.
    error_message : str | None
        Failure message.
    raw : dict[str, Any]
        Full response payload, including request context fields.
    """

    id: int
    user_id: int
    username: str | None
    action: str
    resource_type: str
    resource_id: str | None
    status: str
    created_at: datetime
    description: str | None
    changes: str | None
    old_values: str | None
    new_values: str | None
    error_message: str | None
    raw: dict[str, Any]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AuditEntry:
        """Build an entry from an API payload."""
        return cls(
            id=payload["id"],
            user_id=payload["user_id"],
            username=payload.get("username"),
            action=payload["action"],
            resource_type=payload["resource_type"],
            resource_id=payload.get("resource_id"),
            status=payload["status"],
            created_at=parse_datetime(payload["created_at"]),
            description=payload.get("description"),
            changes=payload.get("changes"),
            old_values=payload.get("old_values"),
            new_values=payload.get("new_values"),
            error_message=payload.get("error_message"),
            raw=payload,
        )

    def change_set(self) -> dict[str, dict[str, Any]]:
        """Decode the serialized change-set.

        Returns
        -------
        dict[str, dict[str, Any]]
            Path to ``{"old", "new"}``; empty when none was captured.
        """
        if not self.changes:
            return {}
        return json.loads(self.changes)


@dataclass(frozen=True, slots=True)
class AuditPage:
    """One page of audit entries.

    Attributes
    ----------
    data : list[AuditEntry]
        Entries on the page, newest first.
    total : int
        Total match count.
    page : int
        Page number.
    page_size : int
        Page size.
    total_pages : int
        Number of pages.
    """

    data: list[AuditEntry]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AuditPage:
        """Build a page from an API envelope."""
        return cls(
            data=[AuditEntry.from_payload(item) for item in payload["data"]],
            total=payload["total"],
            page=payload["page"],
            page_size=payload["page_size"],
            total_pages=payload["total_pages"],
        )


@dataclass(frozen=True, slots=True)
class CleanupResult:
    """Retention cleanup outcome."""

    deleted: int
    cutoff: datetime
