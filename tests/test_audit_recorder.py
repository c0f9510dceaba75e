"""Audit recorder tests."""

import json
import logging
from dataclasses import dataclass
from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request

from app.exceptions import PersistenceError
from app.models.audit import AuditLog
from app.services.audit import (
    Actor,
    AuditRecorder,
    CaptureState,
    RequestContext,
    capture,
    client_ip,
)

ACTOR = Actor(user_id=5, username="clerk")


@dataclass
class Invoice:
    number: str
    total: int
    status: str


def _store() -> AsyncMock:
    store = AsyncMock()
    store.create.side_effect = lambda record: record
    return store


def _request(headers: dict[str, str], client: tuple[str, int] | None) -> Request:
    scope = {
        "type": "http",
        "method": "PUT",
        "path": "/v1/invoices/7",
        "root_path": "",
        "scheme": "http",
        "query_string": b"",
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in headers.items()
        ],
        "client": client,
        "server": ("testserver", 80),
    }
    return Request(scope)


class TestCapture:
    """Lenient serialization."""

    def test_capture_states(self) -> None:
        """Distinguish absent, present, and unserializable values.

        Returns
        -------
        None
            Asserts the three capture states.
        """
        assert capture(None, field="old_values").state is CaptureState.ABSENT
        present = capture({"a": 1}, field="old_values")
        assert present.state is CaptureState.PRESENT
        assert json.loads(present.text) == {"a": 1}
        assert capture(object(), field="old_values").state is CaptureState.UNAVAILABLE


class TestClientIp:
    """Caller address resolution."""

    def test_forwarded_for_first_hop_wins(self) -> None:
        """Prefer the first forwarded hop over the peer."""
        request = _request(
            {"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "X-Real-IP": "10.0.0.2"},
            ("10.0.0.3", 5000),
        )
        assert client_ip(request) == "203.0.113.9"

    def test_real_ip_then_peer(self) -> None:
        """Fall back to X-Real-IP and then to the socket peer."""
        assert client_ip(_request({"X-Real-IP": "10.0.0.2"}, None)) == "10.0.0.2"
        assert client_ip(_request({}, ("10.0.0.3", 5000))) == "10.0.0.3"
        assert client_ip(_request({}, None)) is None


class TestLogAction:
    """Successful-action records."""

    async def test_update_records_snapshots_and_changes(self) -> None:
        """Store both snapshots and only the changed field."""
        store = _store()
        recorder = AuditRecorder(store)

        record = await recorder.log_action(
            ACTOR,
            "UPDATE",
            "INVOICE",
            "7",
            "Posted invoice",
            before=Invoice("INV-7", 120, "draft"),
            after=Invoice("INV-7", 120, "posted"),
        )

        store.create.assert_awaited_once()
        assert isinstance(record, AuditLog)
        assert record.status == "success"
        assert record.user_id == 5 and record.username == "clerk"
        assert json.loads(record.old_values)["status"] == "draft"
        assert json.loads(record.new_values)["status"] == "posted"
        assert json.loads(record.changes) == {
            "status": {"old": "draft", "new": "posted"}
        }
        assert record.unavailable_fields is None
        assert record.method is None and record.ip_address is None

    async def test_create_has_no_change_set(self) -> None:
        """Leave changes empty when only ``after`` is supplied."""
        recorder = AuditRecorder(_store())
        record = await recorder.log_action(
            ACTOR, "CREATE", "INVOICE", "8", "Created", after={"total": 10}
        )
        assert record.old_values is None
        assert json.loads(record.new_values) == {"total": 10}
        assert record.changes is None
        assert record.unavailable_fields is None

    async def test_unserializable_snapshot_is_marked_unavailable(self, caplog) -> None:
        """Persist the record and flag which fields could not be captured."""
        recorder = AuditRecorder(_store())
        with caplog.at_level(logging.WARNING, logger="app.services.audit"):
            record = await recorder.log_action(
                ACTOR,
                "UPDATE",
                "INVOICE",
                "7",
                "Odd state",
                before=object(),
                after={"total": 1},
            )
        assert record.old_values is None
        assert record.changes is None
        assert json.loads(record.new_values) == {"total": 1}
        assert record.unavailable_fields == "old_values,changes"
        assert "not captured" in caplog.text

    async def test_with_context_copies_request_metadata(self) -> None:
        """Attach method, path, caller IP, and user agent."""
        recorder = AuditRecorder(_store())
        request = _request(
            {"User-Agent": "pytest-agent", "X-Forwarded-For": "198.51.100.4"},
            ("127.0.0.1", 1234),
        )
        record = await recorder.log_action_with_context(
            request, ACTOR, "UPDATE", "INVOICE", "7", "Posted invoice"
        )
        assert record.method == "PUT"
        assert record.path == "/v1/invoices/7"
        assert record.ip_address == "198.51.100.4"
        assert record.user_agent == "pytest-agent"
        assert RequestContext.from_request(request).ip_address == "198.51.100.4"


class TestLogError:
    """Failed-action records."""

    async def test_failed_record_fields(self) -> None:
        """Store status, message, and duration."""
        recorder = AuditRecorder(_store())
        error = ValueError("posted invoices are locked")
        record = await recorder.log_error(ACTOR, "DELETE", "INVOICE", "9", error, 42)
        assert record.status == "failed"
        assert record.error_message == "posted invoices are locked"
        assert record.duration_ms == 42
        assert record.changes is None


class TestFailurePolicy:
    """Store failures."""

    async def test_fatal_policy_raises_with_context(self) -> None:
        """Surface the failure with actor and resource context."""
        store = AsyncMock()
        store.create.side_effect = PersistenceError("disk full")
        recorder = AuditRecorder(store, failures_fatal=True)

        with pytest.raises(PersistenceError) as excinfo:
            await recorder.log_action(ACTOR, "UPDATE", "INVOICE", "7", "Posted")

        assert excinfo.value.message == "disk full"
        assert excinfo.value.context == {
            "user_id": 5,
            "action": "UPDATE",
            "resource_type": "INVOICE",
            "resource_id": "7",
        }

    async def test_lenient_policy_logs_and_returns_none(self, caplog) -> None:
        """Swallow the failure after logging it."""
        store = AsyncMock()
        store.create.side_effect = PersistenceError("disk full")
        recorder = AuditRecorder(store, failures_fatal=False)

        with caplog.at_level(logging.ERROR, logger="app.services.audit"):
            result = await recorder.log_error(ACTOR, "DELETE", "INVOICE", "9", "boom")

        assert result is None
        assert "Failed to create audit log" in caplog.text
