"""Audit log schemas."""

from datetime import datetime

from app.schemas.common import APIModel


class AuditLogResponse(APIModel):
    """Audit log entry."""

    id: int
    user_id: int
    username: str | None
    action: str
    resource_type: str
    resource_id: str | None
    method: str | None
    path: str | None
    description: str | None
    ip_address: str | None
    user_agent: str | None
    old_values: str | None
    new_values: str | None
    changes: str | None
    unavailable_fields: str | None
    status: str
    error_message: str | None
    duration_ms: int | None
    created_at: datetime


class CleanupResponse(APIModel):
    """Retention cleanup outcome."""

    success: bool
    deleted: int
    cutoff: datetime
