from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RiskCategory(str, Enum):
    LOW_RISK = "LOW_RISK"
    MEDIUM_RISK = "MEDIUM_RISK"
    HIGH_RISK = "HIGH_RISK"


# Severity order; minimum ages must be non-decreasing along it.
RISK_SEVERITY = (RiskCategory.LOW_RISK, RiskCategory.MEDIUM_RISK, RiskCategory.HIGH_RISK)


class PolicyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    DRAFT = "DRAFT"


class RiskRule(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_age: int = Field(alias="minAge", ge=0)


class AgePolicy(BaseModel):
    """Immutable snapshot of one age policy version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    version: int = Field(gt=0)
    status: PolicyStatus = PolicyStatus.ACTIVE
    policy_json: Dict[RiskCategory, RiskRule] = Field(alias="policyJson")
    description: Optional[str] = None
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_at: datetime = Field(default_factory=_now)

    def min_age_for(self, risk_category: RiskCategory) -> Optional[int]:
        rule = self.policy_json.get(risk_category)
        return rule.min_age if rule else None

    def rules_json(self) -> Dict[str, Dict[str, int]]:
        return {cat.value: {"minAge": rule.min_age} for cat, rule in self.policy_json.items()}


class AgePolicyCreate(BaseModel):
    policy_json: Dict[str, Any] = Field(alias="policyJson")
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class EligibilityRequest(BaseModel):
    age: Optional[int] = Field(default=None, ge=0)
    age_band: Optional[str] = None
    risk_category: str


DEFAULT_POLICY_RULES: Dict[str, Dict[str, int]] = {
    RiskCategory.LOW_RISK.value: {"minAge": 15},
    RiskCategory.MEDIUM_RISK.value: {"minAge": 16},
    RiskCategory.HIGH_RISK.value: {"minAge": 18},
}
