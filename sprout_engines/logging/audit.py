"""Audit helper that builds structured payloads for sensitive safety actions.

The engines never persist audit rows themselves; they hand an ``AuditEvent``
to an injected sink. The default sink only logs the payload.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from sprout_engines.common.identity import RequestContext
from sprout_engines.config import runtime_config

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuditAction(str, Enum):
    age_policy_version_created = "age_policy.version_created"
    messages_legacy_classified = "messages.legacy_classified"
    message_blocked_contact_info = "messages.blocked_contact_info"
    account_deleted = "account.deleted"
    data_export_requested = "account.data_export_requested"
    data_export_completed = "account.data_export_completed"


class AuditEvent(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    action: AuditAction
    actor_id: Optional[str] = None
    actor_type: str = "system"
    target_type: str
    target_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    tenant_id: Optional[str] = None
    env: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


AuditSink = Callable[[AuditEvent], Optional[dict]]


def log_audit_sink(event: AuditEvent) -> dict:
    logger.info("audit %s", json.dumps(event.model_dump(mode="json"), sort_keys=True))
    return {"status": "accepted", "id": event.id}


def build_audit_event(
    ctx: Optional[RequestContext],
    action: AuditAction,
    target_type: str,
    target_id: str,
    metadata: Optional[Dict[str, Any]] = None,
    actor_id: Optional[str] = None,
) -> AuditEvent:
    base_metadata: Dict[str, Any] = {}
    if ctx is not None:
        base_metadata["trace_id"] = ctx.request_id
    if metadata:
        base_metadata.update(metadata)
    resolved_actor = actor_id or (ctx.user_id if ctx else None)
    return AuditEvent(
        action=action,
        actor_id=resolved_actor,
        actor_type="human" if resolved_actor else "system",
        target_type=target_type,
        target_id=target_id,
        metadata=base_metadata,
        tenant_id=ctx.tenant_id if ctx else None,
        env=ctx.env if ctx else runtime_config.get_env(),
        request_id=ctx.request_id if ctx else None,
    )


def emit_audit_event(
    ctx: Optional[RequestContext],
    action: AuditAction,
    target_type: str,
    target_id: str,
    metadata: Optional[Dict[str, Any]] = None,
    actor_id: Optional[str] = None,
    sink: Optional[AuditSink] = None,
) -> AuditEvent:
    event = build_audit_event(ctx, action, target_type, target_id, metadata=metadata, actor_id=actor_id)
    result = (sink or log_audit_sink)(event)
    if not result or result.get("status") != "accepted":
        detail = (result or {}).get("error", "audit persistence failed")
        if runtime_config.audit_strict():
            raise RuntimeError(detail)
        logger.warning("audit persistence failed: %s", detail)
    return event


def account_deleted_event(ctx: RequestContext, user_id: str, metadata: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return build_audit_event(ctx, AuditAction.account_deleted, "user", user_id, metadata=metadata)


def data_export_event(
    ctx: RequestContext,
    user_id: str,
    completed: bool = False,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    action = AuditAction.data_export_completed if completed else AuditAction.data_export_requested
    return build_audit_event(ctx, action, "user", user_id, metadata=metadata)
