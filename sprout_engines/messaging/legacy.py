"""Legacy message classification.

Messages stored before the structured-messaging rollout have no intent.
They stay readable but become read-only: the classifier flags them once and
the renderer refuses replies to them.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from sprout_engines.common.errors import LegacyMessageReadOnly
from sprout_engines.common.identity import RequestContext
from sprout_engines.logging.audit import AuditAction, AuditSink, emit_audit_event
from sprout_engines.messaging.models import MessageRecord, MessageState
from sprout_engines.messaging.repository import MessageRepository, message_repo_from_env

logger = logging.getLogger(__name__)


def message_state(record: MessageRecord) -> MessageState:
    if record.intent is not None:
        return MessageState.STRUCTURED
    return MessageState.LEGACY if record.is_legacy else MessageState.UNCLASSIFIED


def ensure_reply_allowed(record: MessageRecord) -> None:
    if record.is_legacy:
        raise LegacyMessageReadOnly(record.id)


def classify_legacy(messages: Iterable[MessageRecord]) -> int:
    """Flag in place every record with no intent; only ``is_legacy`` is written."""
    count = 0
    for record in messages:
        if record.intent is None and not record.is_legacy:
            record.is_legacy = True
            count += 1
    return count


class LegacyMessageClassifier:
    def __init__(
        self,
        repo: Optional[MessageRepository] = None,
        audit_sink: Optional[AuditSink] = None,
    ) -> None:
        self.repo = repo or message_repo_from_env()
        self._audit_sink = audit_sink

    def classify_legacy(self, messages: Iterable[MessageRecord]) -> int:
        return classify_legacy(messages)

    def classify_store(self, ctx: Optional[RequestContext] = None) -> int:
        count = self.repo.mark_legacy_unclassified()
        logger.info("legacy classification flagged %s message(s)", count)
        emit_audit_event(
            ctx,
            AuditAction.messages_legacy_classified,
            target_type="messages",
            target_id="*",
            metadata={"classified": count},
            sink=self._audit_sink,
        )
        return count


def classify_store(repo: MessageRepository, ctx: Optional[RequestContext] = None) -> int:
    return LegacyMessageClassifier(repo=repo).classify_store(ctx)
