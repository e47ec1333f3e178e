from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sprout_engines.age_policy.models import (
    DEFAULT_POLICY_RULES,
    RISK_SEVERITY,
    AgePolicy,
    RiskCategory,
    RiskRule,
)
from sprout_engines.age_policy.repository import AgePolicyRepository, age_policy_repo_from_env
from sprout_engines.common.errors import InvalidPolicyShape, NoActivePolicy
from sprout_engines.common.identity import RequestContext
from sprout_engines.logging.audit import AuditAction, AuditSink, emit_audit_event

logger = logging.getLogger(__name__)

BOOTSTRAP_DESCRIPTION = "Initial age policy (system bootstrap)"


def _parse_min_age(category: str, raw_rule: Any) -> int:
    if isinstance(raw_rule, RiskRule):
        return raw_rule.min_age
    if not isinstance(raw_rule, Mapping) or "minAge" not in raw_rule:
        raise InvalidPolicyShape(
            f"{category} must be an object with a minAge field",
            details={"risk_category": category},
        )
    extra = set(raw_rule) - {"minAge"}
    if extra:
        raise InvalidPolicyShape(
            f"{category} has unexpected fields: {', '.join(sorted(extra))}",
            details={"risk_category": category},
        )
    min_age = raw_rule["minAge"]
    # bool is an int subclass; reject it explicitly.
    if isinstance(min_age, bool) or not isinstance(min_age, int) or min_age < 0:
        raise InvalidPolicyShape(
            f"{category}.minAge must be a non-negative integer",
            details={"risk_category": category, "minAge": min_age},
        )
    return min_age


def validate_policy_json(policy_json: Mapping[Any, Any]) -> Dict[RiskCategory, RiskRule]:
    """Parse a raw policy mapping into typed rules, raising InvalidPolicyShape."""
    if not isinstance(policy_json, Mapping):
        raise InvalidPolicyShape("policyJson must be an object keyed by risk category")
    by_name = {(k.value if isinstance(k, RiskCategory) else str(k)): v for k, v in policy_json.items()}
    known = {c.value for c in RiskCategory}
    unknown = set(by_name) - known
    if unknown:
        raise InvalidPolicyShape(
            f"Unknown risk categories: {', '.join(sorted(unknown))}",
            details={"unknown": sorted(unknown)},
        )
    missing = [c.value for c in RISK_SEVERITY if c.value not in by_name]
    if missing:
        raise InvalidPolicyShape(
            f"Missing risk categories: {', '.join(missing)}",
            details={"missing": missing},
        )
    rules = {c: RiskRule(min_age=_parse_min_age(c.value, by_name[c.value])) for c in RISK_SEVERITY}
    for lower, higher in zip(RISK_SEVERITY, RISK_SEVERITY[1:]):
        if rules[lower].min_age > rules[higher].min_age:
            raise InvalidPolicyShape(
                f"{higher.value}.minAge must be >= {lower.value}.minAge",
                details={lower.value: rules[lower].min_age, higher.value: rules[higher].min_age},
            )
    return rules


class AgePolicyService:
    """Versioned age policy store; exactly one version is ACTIVE."""

    def __init__(
        self,
        repo: Optional[AgePolicyRepository] = None,
        audit_sink: Optional[AuditSink] = None,
    ) -> None:
        self.repo = repo or age_policy_repo_from_env()
        self._audit_sink = audit_sink

    def get_active_policy(self) -> AgePolicy:
        policy = self.repo.get_active()
        if policy is None:
            raise NoActivePolicy()
        return policy

    def get_version(self, version: int) -> Optional[AgePolicy]:
        return self.repo.get_version(version)

    def list_versions(self) -> List[AgePolicy]:
        return self.repo.list_versions()

    def create_version(
        self,
        policy_json: Mapping[Any, Any],
        description: Optional[str] = None,
        created_by: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> AgePolicy:
        rules = validate_policy_json(policy_json)
        policy = self.repo.create_active(rules, description, created_by)
        logger.info("age policy v%s activated by %s", policy.version, created_by or "system")
        emit_audit_event(
            ctx,
            AuditAction.age_policy_version_created,
            target_type="age_policy",
            target_id=str(policy.version),
            actor_id=created_by,
            metadata={
                "policy_id": policy.id,
                "previous_version": policy.version - 1 or None,
                "rules": policy.rules_json(),
            },
            sink=self._audit_sink,
        )
        return policy

    def bootstrap(self, ctx: Optional[RequestContext] = None) -> AgePolicy:
        """Ensure an ACTIVE policy exists, creating version 1 from the default rules."""
        existing = self.repo.get_active()
        if existing is not None:
            return existing
        rules = validate_policy_json(DEFAULT_POLICY_RULES)
        policy = self.repo.create_initial(rules, BOOTSTRAP_DESCRIPTION, None)
        if policy is None:
            # Another writer activated a policy between the read and the insert.
            winner = self.repo.get_active()
            if winner is None:
                raise NoActivePolicy()
            logger.info("age policy bootstrap: v%s already active", winner.version)
            return winner
        logger.info("age policy bootstrap: v%s active", policy.version)
        emit_audit_event(
            ctx,
            AuditAction.age_policy_version_created,
            target_type="age_policy",
            target_id=str(policy.version),
            metadata={"policy_id": policy.id, "previous_version": None, "rules": policy.rules_json()},
            sink=self._audit_sink,
        )
        return policy
