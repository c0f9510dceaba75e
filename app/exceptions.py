"""Audit-layer exceptions. Typed, no HTTP."""

from __future__ import annotations

from typing import Any


class AuditError(Exception):
    """Base for all audit-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AuditError):
    """Raised for malformed filters or retention windows, before any store access."""


class NotFoundError(AuditError):
    """Raised when an audit record id is unknown."""


class PersistenceError(AuditError):
    """Raised when the store cannot write, read, or delete.

    Parameters
    ----------
    message : str
        Error message.
    context : dict[str, Any] | None, default=None
        Structured context (actor, action, resource) for logging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.context = dict(context or {})
        super().__init__(message)


class SerializationError(AuditError):
    """Raised when a snapshot or change-set cannot be encoded as JSON."""
