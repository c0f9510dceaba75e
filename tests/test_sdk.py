"""Python SDK tests."""

from datetime import datetime, timezone

import httpx
import pytest

from erp_audit import (
    AuditAuthError,
    AuditClient,
    AuditConnectionError,
    AuditNotFoundError,
    AuditServerError,
    AuditValidationError,
)

ENTRY = {
    "id": 12,
    "user_id": 3,
    "username": "clerk",
    "action": "UPDATE",
    "resource_type": "CUSTOMER",
    "resource_id": "4",
    "method": "PUT",
    "path": "/v1/customers/4",
    "description": "Updated customer C-004",
    "ip_address": "203.0.113.7",
    "user_agent": "sdk",
    "old_values": '{"name":"Old"}',
    "new_values": '{"name":"New"}',
    "changes": '{"name":{"old":"Old","new":"New"}}',
    "unavailable_fields": None,
    "status": "success",
    "error_message": None,
    "duration_ms": None,
    "created_at": "2026-10-01T12:00:00Z",
}


def _client(handler) -> AuditClient:
    return AuditClient(
        base_url="http://erp-audit.test",
        token="erp_test",
        transport=httpx.MockTransport(handler),
    )


class TestAuditClient:
    """SDK client behavior tests."""

    def test_from_env_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reject missing token environment configuration.

        Parameters
        ----------
        monkeypatch : pytest.MonkeyPatch
            Environment monkeypatch helper.

        Returns
        -------
        None
            Asserts env validation.
        """
        monkeypatch.delenv("ERP_AUDIT_TOKEN", raising=False)
        monkeypatch.setenv("ERP_AUDIT_BASE_URL", "http://example.test")

        with pytest.raises(AuditValidationError):
            AuditClient.from_env()

    def test_list_logs_sends_filters_and_parses_page(self) -> None:
        """Send filters as query parameters and decode the envelope.

        Returns
        -------
        None
            Asserts request parameters and response parsing.
        """
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer erp_test"
            assert request.url.path == "/v1/audit-logs"
            seen.update(request.url.params)
            return httpx.Response(
                200,
                json={
                    "data": [ENTRY],
                    "total": 1,
                    "page": 2,
                    "page_size": 5,
                    "total_pages": 1,
                },
            )

        page = _client(handler).list_logs(
            page=2,
            page_size=5,
            action="UPDATE",
            username="clerk",
            start_time=datetime(2026, 10, 1, tzinfo=timezone.utc),
            search=None,
        )

        assert seen == {
            "page": "2",
            "page_size": "5",
            "action": "UPDATE",
            "username": "clerk",
            "start_time": "2026-10-01T00:00:00+00:00",
        }
        assert page.total == 1
        entry = page.data[0]
        assert entry.created_at == datetime(2026, 10, 1, 12, tzinfo=timezone.utc)
        assert entry.change_set() == {"name": {"old": "Old", "new": "New"}}
        assert entry.raw["ip_address"] == "203.0.113.7"

    def test_unknown_filter_is_rejected_locally(self) -> None:
        """Refuse filters the API does not support without sending a request."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError(f"Unexpected request {request.url}")

        with pytest.raises(AuditValidationError, match="colour"):
            _client(handler).list_logs(colour="red")

    def test_error_statuses_map_to_typed_exceptions(self) -> None:
        """Map 404, 400, and 403 responses to SDK exceptions."""
        statuses = iter([404, 400, 403])

        def handler(request: httpx.Request) -> httpx.Response:
            _ = request
            return httpx.Response(next(statuses), json={"detail": "nope"})

        client = _client(handler)
        with pytest.raises(AuditNotFoundError) as not_found:
            client.get_log(99)
        assert not_found.value.status_code == 404
        assert str(not_found.value) == "nope"
        with pytest.raises(AuditValidationError):
            client.cleanup(0)
        with pytest.raises(AuditAuthError):
            client.cleanup(30)

    def test_transient_errors_are_retried(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Retry a 503 and return the eventual success."""
        monkeypatch.setattr("erp_audit.client.sleep", lambda _: None)
        attempts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request.url.path)
            if len(attempts) == 1:
                return httpx.Response(503, json={"detail": "busy"})
            return httpx.Response(
                200,
                json={"success": True, "deleted": 4, "cutoff": "2026-09-01T12:00:00Z"},
            )

        result = _client(handler).cleanup(30)

        assert len(attempts) == 2
        assert result.deleted == 4
        assert result.cutoff == datetime(2026, 9, 1, 12, tzinfo=timezone.utc)

    def test_exhausted_retries_raise_server_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Surface persistent 5xx answers as a server error with its status."""
        monkeypatch.setattr("erp_audit.client.sleep", lambda _: None)
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            _ = request
            attempts.append(1)
            return httpx.Response(503, json={"detail": "Failed to search audit logs"})

        with pytest.raises(AuditServerError) as exc_info:
            _client(handler).list_logs()

        assert len(attempts) == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Failed to search audit logs"

    def test_unreachable_service_raises_connection_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Wrap transport failures without a status code."""
        monkeypatch.setattr("erp_audit.client.sleep", lambda _: None)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuditConnectionError) as exc_info:
            _client(handler).get_log(1)

        assert exc_info.value.status_code is None

    def test_resource_history_path(self) -> None:
        """Request the resource history endpoint."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/audit-logs/resource/CUSTOMER/4"
            return httpx.Response(
                200,
                json={
                    "data": [],
                    "total": 0,
                    "page": 1,
                    "page_size": 10,
                    "total_pages": 0,
                },
            )

        page = _client(handler).list_resource_logs("CUSTOMER", "4")
        assert page.data == []
        assert page.total_pages == 0

    def test_resource_history_escapes_composite_ids(self) -> None:
        """Percent-encode slashes so a composite id stays one path segment."""
        raw_paths: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            raw_paths.append(request.url.raw_path)
            return httpx.Response(
                200,
                json={
                    "data": [],
                    "total": 0,
                    "page": 1,
                    "page_size": 10,
                    "total_pages": 0,
                },
            )

        _client(handler).list_resource_logs("ORDER", "SO-1/2")

        assert raw_paths[0].startswith(b"/v1/audit-logs/resource/ORDER/SO-1%2F2")
