"""Errors raised by the audit log client.

Every error the client raises derives from ``AuditClientError``. Failures
that carry an HTTP response derive from ``AuditAPIError`` and expose the
status code; the subclass tells callers how to react.
"""

from __future__ import annotations


class AuditClientError(Exception):
    """Base error for the audit log client."""


class AuditAPIError(AuditClientError):
    """The audit service answered with an unexpected error.

    Parameters
    ----------
    message : str
        ``detail`` from the response body, or a generic description.
    status_code : int | None, default=None
        HTTP status code; ``None`` when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuditConnectionError(AuditAPIError):
    """The service could not be reached after all retries."""


class AuditAuthError(AuditAPIError):
    """The token is missing or invalid (401), or lacks admin rights (403)."""


class AuditValidationError(AuditAPIError):
    """Filters, pagination or retention days were rejected (400, 422).

    Also raised locally, without a status code, for unknown filter names and
    missing client configuration.
    """


class AuditNotFoundError(AuditAPIError):
    """No audit record has the requested id (404)."""


class AuditServerError(AuditAPIError):
    """The service failed to read or write the audit store (5xx).

    Transient statuses are retried first; this is raised once retries run out.
    """
