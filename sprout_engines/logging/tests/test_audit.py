import logging

import pytest

from sprout_engines.common.identity import RequestContext
from sprout_engines.logging.audit import (
    AuditAction,
    account_deleted_event,
    build_audit_event,
    data_export_event,
    emit_audit_event,
    log_audit_sink,
)


def _ctx() -> RequestContext:
    return RequestContext(tenant_id="t_sprout", user_id="admin_1", request_id="trace-123")


def test_build_audit_event_from_context() -> None:
    event = build_audit_event(_ctx(), AuditAction.age_policy_version_created, "age_policy", "2", metadata={"x": 1})
    assert event.actor_id == "admin_1"
    assert event.actor_type == "human"
    assert event.tenant_id == "t_sprout"
    assert event.metadata == {"trace_id": "trace-123", "x": 1}


def test_system_event_without_context(monkeypatch) -> None:
    monkeypatch.setenv("ENV", "staging")
    event = build_audit_event(None, AuditAction.messages_legacy_classified, "messages", "*")
    assert event.actor_id is None
    assert event.actor_type == "system"
    assert event.env == "staging"


def test_emit_uses_injected_sink() -> None:
    seen = []

    def sink(event):
        seen.append(event)
        return {"status": "accepted"}

    event = emit_audit_event(_ctx(), AuditAction.message_blocked_contact_info, "conversation", "c1", sink=sink)
    assert seen == [event]


def test_default_sink_logs_payload(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="sprout_engines.logging.audit"):
        result = log_audit_sink(build_audit_event(None, AuditAction.account_deleted, "user", "u1"))
    assert result["status"] == "accepted"
    assert "account.deleted" in caplog.text


def test_failed_sink_warns_by_default(monkeypatch, caplog) -> None:
    monkeypatch.delenv("AUDIT_STRICT", raising=False)
    with caplog.at_level(logging.WARNING):
        emit_audit_event(None, AuditAction.account_deleted, "user", "u1", sink=lambda e: {"status": "error", "error": "db down"})
    assert "db down" in caplog.text


def test_failed_sink_raises_when_strict(monkeypatch) -> None:
    monkeypatch.setenv("AUDIT_STRICT", "1")
    with pytest.raises(RuntimeError, match="db down"):
        emit_audit_event(None, AuditAction.account_deleted, "user", "u1", sink=lambda e: {"status": "error", "error": "db down"})


def test_account_lifecycle_events() -> None:
    assert account_deleted_event(_ctx(), "u9").action == AuditAction.account_deleted
    assert data_export_event(_ctx(), "u9").action == AuditAction.data_export_requested
    done = data_export_event(_ctx(), "u9", completed=True)
    assert done.action == AuditAction.data_export_completed
    assert done.target_id == "u9"
