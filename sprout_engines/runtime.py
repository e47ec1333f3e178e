"""Explicitly constructed service container for the safety engines.

Built once at startup and passed to the HTTP adapter; nothing here is a
module-level singleton.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from sprout_engines.age_policy.repository import AgePolicyRepository
from sprout_engines.age_policy.service import AgePolicyService
from sprout_engines.guardrails.contact_leak.engine import RegexContactLeakDetector
from sprout_engines.guardrails.contact_leak.schemas import ContactLeakDetector
from sprout_engines.logging.audit import AuditSink
from sprout_engines.messaging.catalog import IntentCatalog, default_catalog
from sprout_engines.messaging.legacy import LegacyMessageClassifier
from sprout_engines.messaging.renderer import MessageRenderer
from sprout_engines.messaging.repository import MessageRepository, message_repo_from_env

logger = logging.getLogger(__name__)


@dataclass
class SafetyRuntime:
    policy_service: AgePolicyService
    catalog: IntentCatalog
    detector: ContactLeakDetector
    renderer: MessageRenderer
    message_repo: MessageRepository
    classifier: LegacyMessageClassifier
    audit_sink: Optional[AuditSink] = None


def build_runtime(
    policy_repo: Optional[AgePolicyRepository] = None,
    message_repo: Optional[MessageRepository] = None,
    catalog: Optional[IntentCatalog] = None,
    detector: Optional[ContactLeakDetector] = None,
    audit_sink: Optional[AuditSink] = None,
    bootstrap: bool = True,
) -> SafetyRuntime:
    policy_service = AgePolicyService(repo=policy_repo, audit_sink=audit_sink)
    if bootstrap:
        policy_service.bootstrap()
    catalog = catalog or default_catalog()
    detector = detector or RegexContactLeakDetector()
    message_repo = message_repo or message_repo_from_env()
    logger.info("safety runtime ready with %s intents", len(catalog))
    return SafetyRuntime(
        policy_service=policy_service,
        catalog=catalog,
        detector=detector,
        renderer=MessageRenderer(catalog, detector=detector),
        message_repo=message_repo,
        classifier=LegacyMessageClassifier(repo=message_repo, audit_sink=audit_sink),
        audit_sink=audit_sink,
    )


def get_runtime(request: Request) -> SafetyRuntime:
    return request.app.state.runtime
