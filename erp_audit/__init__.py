"""Python SDK for the ERP audit log API."""

from erp_audit.client import AuditClient
from erp_audit.exceptions import (
    AuditAPIError,
    AuditAuthError,
    AuditClientError,
    AuditConnectionError,
    AuditNotFoundError,
    AuditServerError,
    AuditValidationError,
)
from erp_audit.types import AuditEntry, AuditPage, CleanupResult

__all__ = [
    "AuditAPIError",
    "AuditAuthError",
    "AuditClient",
    "AuditClientError",
    "AuditConnectionError",
    "AuditEntry",
    "AuditNotFoundError",
    "AuditPage",
    "AuditServerError",
    "AuditValidationError",
    "CleanupResult",
]
