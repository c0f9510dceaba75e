"""Synchronous client for the audit query API."""

from __future__ import annotations

import os
from datetime import datetime
from time import sleep
from typing import Any
from urllib.parse import quote

import httpx

from erp_audit.exceptions import (
    AuditAPIError,
    AuditAuthError,
    AuditConnectionError,
    AuditNotFoundError,
    AuditServerError,
    AuditValidationError,
)
from erp_audit.types import AuditEntry, AuditPage, CleanupResult, parse_datetime

FILTER_NAMES = (
    "user_id",
    "username",
    "action",
    "resource_type",
    "resource_id",
    "status",
    "ip_address",
    "start_time",
    "end_time",
    "search",
)


class AuditClient:
    """Client for the ERP audit log API.

    Parameters
    ----------
    base_url : str
        Service base URL.
    token : str
        User bearer token.
    timeout : float, default=10.0
        Request timeout in seconds.
    max_retries : int, default=2
        Number of retries for transient errors.
    transport : httpx.BaseTransport | None, default=None
        Optional transport for tests or advanced usage.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "AuditClient":
        """Build a client from ``ERP_AUDIT_BASE_URL`` and ``ERP_AUDIT_TOKEN``.

        Returns
        -------
        AuditClient
            Configured client.
        """
        base_url = os.environ.get("ERP_AUDIT_BASE_URL", "http://127.0.0.1:8000")
        token = os.environ.get("ERP_AUDIT_TOKEN")
        if not token:
            raise AuditValidationError(
                "ERP_AUDIT_TOKEN is required to create the client"
            )
        return cls(base_url=base_url, token=token)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def list_logs(
        self, *, page: int = 1, page_size: int = 0, **filters: Any
    ) -> AuditPage:
        """Search audit logs.

        Parameters
        ----------
        page : int, default=1
            One-based page number.
        page_size : int, default=0
            Page size; non-positive uses the server default.
        **filters : Any
            Any of ``FILTER_NAMES``. Datetimes are sent as ISO strings.

        Returns
        -------
        AuditPage
            Matching entries, newest first.
        """
        unknown = set(filters) - set(FILTER_NAMES)
        if unknown:
            raise AuditValidationError(
                f"Unknown audit filters: {', '.join(sorted(unknown))}"
            )
        params: dict[str, Any] = {"page": page, "page_size": page_size}
        for name, value in filters.items():
            if value is None:
                continue
            params[name] = value.isoformat() if isinstance(value, datetime) else value
        response = self._request("GET", "/v1/audit-logs", params=params)
        return AuditPage.from_payload(response.json())

    def get_log(self, audit_id: int) -> AuditEntry:
        """Fetch one audit record."""
        response = self._request("GET", f"/v1/audit-logs/{audit_id}")
        return AuditEntry.from_payload(response.json())

    def list_user_logs(
        self, user_id: int, *, page: int = 1, page_size: int = 0
    ) -> AuditPage:
        """List records performed by one user."""
        response = self._request(
            "GET",
            f"/v1/audit-logs/user/{user_id}",
            params={"page": page, "page_size": page_size},
        )
        return AuditPage.from_payload(response.json())

    def list_resource_logs(
        self,
        resource_type: str,
        resource_id: str,
        *,
        page: int = 1,
        page_size: int = 0,
    ) -> AuditPage:
        """List records targeting one resource."""
        response = self._request(
            "GET",
            f"/v1/audit-logs/resource/{quote(resource_type, safe='')}/"
            f"{quote(resource_id, safe='')}",
            params={"page": page, "page_size": page_size},
        )
        return AuditPage.from_payload(response.json())

    def cleanup(self, days: int) -> CleanupResult:
        """Delete records older than ``days`` days (administrators only).

        Parameters
        ----------
        days : int
            Positive retention window.

        Returns
        -------
        CleanupResult
            Number of deleted records and the cutoff used.
        """
        response = self._request(
            "DELETE", "/v1/audit-logs/cleanup", params={"days": days}
        )
        data = response.json()
        return CleanupResult(
            deleted=data["deleted"], cutoff=parse_datetime(data["cutoff"])
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an HTTP request with light retry logic.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Relative request path.
        **kwargs : Any
            Additional request arguments.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        for attempt in range(self.max_retries + 1):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                if attempt < self.max_retries:
                    sleep(0.1 * (attempt + 1))
                    continue
                raise AuditConnectionError(str(exc)) from exc

            if response.status_code < 400:
                return response
            if _is_transient_response(response) and attempt < self.max_retries:
                sleep(0.1 * (attempt + 1))
                continue
            raise _exception_for_response(response)
        raise AuditAPIError("Request failed")

    def __enter__(self) -> "AuditClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        self.close()


def _is_transient_response(response: httpx.Response) -> bool:
    """Return whether a response is worth retrying."""
    return response.status_code in {429, 502, 503, 504}


def _exception_for_response(response: httpx.Response) -> AuditAPIError:
    """Map an error response to a typed SDK exception.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    AuditAPIError
        Typed SDK error.
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    detail = data.get("detail") if isinstance(data, dict) else None
    if not isinstance(detail, str):
        detail = None
    message = detail or f"Audit request failed with status {response.status_code}"

    if response.status_code in {401, 403}:
        return AuditAuthError(message, status_code=response.status_code)
    if response.status_code == 404:
        return AuditNotFoundError(message, status_code=response.status_code)
    if response.status_code in {400, 422}:
        return AuditValidationError(message, status_code=response.status_code)
    if response.status_code >= 500:
        return AuditServerError(message, status_code=response.status_code)
    return AuditAPIError(message, status_code=response.status_code)
