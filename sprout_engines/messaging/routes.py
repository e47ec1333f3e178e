"""FastAPI routes for structured messaging."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from sprout_engines.common.error_envelope import error_response
from sprout_engines.common.errors import ContactInfoDetected, MissingConversationContext
from sprout_engines.common.identity import RequestContext, get_request_context, require_admin
from sprout_engines.guardrails.contact_leak.engine import run as run_contact_leak
from sprout_engines.guardrails.contact_leak.schemas import ContactLeakRequest
from sprout_engines.logging.audit import AuditAction, emit_audit_event
from sprout_engines.messaging.models import IntentView, MessageRecord, RenderRequest, UserRole
from sprout_engines.messaging.policy import can_use_intent
from sprout_engines.runtime import SafetyRuntime, get_runtime

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/intents")
def list_intents(role: Optional[UserRole] = None, runtime: SafetyRuntime = Depends(get_runtime)):
    intents = runtime.catalog.intents_for_role(role) if role else runtime.catalog.get_all_intents()
    return {"intents": [IntentView.from_intent(i) for i in intents]}


@router.post("/render", status_code=201)
def render_message(
    req: RenderRequest,
    context: RequestContext = Depends(get_request_context),
    runtime: SafetyRuntime = Depends(get_runtime),
):
    intent = runtime.catalog.get_intent(req.intent)
    if not req.conversation_id:
        raise MissingConversationContext()
    check = can_use_intent(req.sender_role, intent)
    if not check.allowed:
        error_response(
            code="messaging.direction_restricted",
            message=check.reason or "Intent not allowed for this role",
            status_code=403,
            gate="intent_catalog",
        )
    reply_to = None
    if req.reply_to_id:
        reply_to = runtime.message_repo.get(req.reply_to_id)
        if reply_to is None:
            error_response(
                code="messaging.message_not_found",
                message=f"Message {req.reply_to_id} not found",
                status_code=404,
                gate="intent_catalog",
            )
    try:
        message = runtime.renderer.render(
            intent.intent,
            req.variables,
            sender_id=context.user_id,
            job_id=req.job_id,
            conversation_id=req.conversation_id,
            reply_to=reply_to,
            sender_age=req.sender_age_band,
        )
    except ContactInfoDetected as exc:
        emit_audit_event(
            context,
            AuditAction.message_blocked_contact_info,
            target_type="conversation",
            target_id=req.conversation_id,
            metadata={"intent": req.intent, "variable": exc.variable_name, "pattern": exc.matched_pattern},
            sink=runtime.audit_sink,
        )
        raise
    runtime.message_repo.insert(MessageRecord.from_rendered(message))
    return message


@router.post("/scan")
def scan_text(req: ContactLeakRequest, runtime: SafetyRuntime = Depends(get_runtime)):
    return run_contact_leak(req, detector=runtime.detector)


@router.post("/legacy/classify")
def classify_legacy_messages(
    context: RequestContext = Depends(get_request_context),
    runtime: SafetyRuntime = Depends(get_runtime),
):
    require_admin(context)
    return {"classified": runtime.classifier.classify_store(context)}
