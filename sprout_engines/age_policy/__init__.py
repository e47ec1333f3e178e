"""Versioned age policy store and age gate."""

from sprout_engines.age_policy.gate import AgeBand, EligibilityDecision, evaluate, is_eligible
from sprout_engines.age_policy.models import AgePolicy, PolicyStatus, RiskCategory, RiskRule
from sprout_engines.age_policy.repository import (
    AgePolicyRepository,
    InMemoryAgePolicyRepository,
    SqliteAgePolicyRepository,
)
from sprout_engines.age_policy.service import AgePolicyService, validate_policy_json

__all__ = [
    "AgeBand",
    "AgePolicy",
    "AgePolicyRepository",
    "AgePolicyService",
    "EligibilityDecision",
    "InMemoryAgePolicyRepository",
    "PolicyStatus",
    "RiskCategory",
    "RiskRule",
    "SqliteAgePolicyRepository",
    "evaluate",
    "is_eligible",
    "validate_policy_json",
]
