"""Age gate evaluator.

Pure functions of (user age or band, job risk category, policy snapshot).
Only age bands ever leave the server, so a band is resolved to its floor:
a 16-17 user is treated as 16. Unknown ages are never eligible.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel

from sprout_engines.age_policy.categories import risk_for_category
from sprout_engines.age_policy.models import RISK_SEVERITY, AgePolicy, RiskCategory
from sprout_engines.common.errors import UnknownRiskCategory

# Absolute platform floor; employers may raise a job's minimum age but never below this.
PLATFORM_MINIMUM_AGE = 15


class AgeBand(str, Enum):
    # single-year brackets used for job eligibility
    UNDER_15 = "UNDER_15"
    AGE_15 = "AGE_15"
    AGE_16 = "AGE_16"
    AGE_17 = "AGE_17"
    AGE_18_PLUS = "AGE_18_PLUS"
    # coarse youth bands used for platform access and messaging
    UNDER_16 = "UNDER_16"
    AGE_16_17 = "AGE_16_17"
    AGE_18_20 = "AGE_18_20"
    OVER_20 = "OVER_20"
    UNKNOWN = "UNKNOWN"


BAND_FLOORS: Dict[AgeBand, int] = {
    AgeBand.UNDER_15: 0,
    AgeBand.AGE_15: 15,
    AgeBand.AGE_16: 16,
    AgeBand.AGE_17: 17,
    AgeBand.AGE_18_PLUS: 18,
    AgeBand.UNDER_16: 0,
    AgeBand.AGE_16_17: 16,
    AgeBand.AGE_18_20: 18,
    AgeBand.OVER_20: 21,
}

MINOR_BANDS = frozenset({AgeBand.UNDER_15, AgeBand.AGE_15, AgeBand.AGE_16, AgeBand.AGE_17, AgeBand.UNDER_16, AgeBand.AGE_16_17})

AgeInput = Union[int, AgeBand, str, None]


class EligibilityDecision(BaseModel):
    eligible: bool
    age_floor: Optional[int] = None
    age_band: AgeBand
    risk_category: RiskCategory
    required_min_age: int
    policy_version: int
    reason: str


class BaselineDecision(BaseModel):
    final_age: int
    was_adjusted: bool
    baseline_age: int


class JobAgeDefaults(BaseModel):
    minimum_age: int
    risk_category: RiskCategory
    policy_version: int


def compute_age_years(date_of_birth: Union[date, datetime], today: Optional[date] = None) -> int:
    """Whole years between date of birth and today; a Feb 29 birthday turns over on Mar 1."""
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def age_bracket_for_age(age: Optional[int]) -> AgeBand:
    if age is None:
        return AgeBand.UNKNOWN
    if age < 15:
        return AgeBand.UNDER_15
    if age == 15:
        return AgeBand.AGE_15
    if age == 16:
        return AgeBand.AGE_16
    if age == 17:
        return AgeBand.AGE_17
    return AgeBand.AGE_18_PLUS


def youth_band_for_age(age: Optional[int]) -> AgeBand:
    if age is None:
        return AgeBand.UNKNOWN
    if age < 16:
        return AgeBand.UNDER_16
    if age <= 17:
        return AgeBand.AGE_16_17
    if age <= 20:
        return AgeBand.AGE_18_20
    return AgeBand.OVER_20


def is_minor(band: AgeBand) -> bool:
    return band in MINOR_BANDS


def _coerce_band(value: Union[AgeBand, str]) -> AgeBand:
    try:
        return AgeBand(value)
    except ValueError:
        return AgeBand.UNKNOWN


def resolve_age(user_age: AgeInput) -> tuple[Optional[int], AgeBand]:
    """Return (age floor, band); the floor is None when the age is unknown."""
    if user_age is None:
        return None, AgeBand.UNKNOWN
    if isinstance(user_age, bool):
        raise TypeError("age must be an int or an AgeBand")
    if isinstance(user_age, int):
        if user_age < 0:
            return None, AgeBand.UNKNOWN
        return user_age, age_bracket_for_age(user_age)
    band = _coerce_band(user_age)
    return BAND_FLOORS.get(band), band


def _resolve_risk(risk_category: Union[RiskCategory, str]) -> RiskCategory:
    try:
        return RiskCategory(risk_category)
    except ValueError as exc:
        raise UnknownRiskCategory(risk_category) from exc


def min_age_for_risk(risk_category: Union[RiskCategory, str], policy: AgePolicy) -> int:
    risk = _resolve_risk(risk_category)
    min_age = policy.min_age_for(risk)
    if min_age is None:
        raise UnknownRiskCategory(risk_category)
    return min_age


def evaluate(user_age: AgeInput, job_risk_category: Union[RiskCategory, str], policy: AgePolicy) -> EligibilityDecision:
    risk = _resolve_risk(job_risk_category)
    required = min_age_for_risk(risk, policy)
    floor, band = resolve_age(user_age)
    if floor is None:
        return EligibilityDecision(
            eligible=False,
            age_band=band,
            risk_category=risk,
            required_min_age=required,
            policy_version=policy.version,
            reason="Age verification required",
        )
    eligible = floor >= required
    reason = (
        f"User age {floor} meets minimum requirement of {required}"
        if eligible
        else f"User age {floor} is below minimum requirement of {required}"
    )
    return EligibilityDecision(
        eligible=eligible,
        age_floor=floor,
        age_band=band,
        risk_category=risk,
        required_min_age=required,
        policy_version=policy.version,
        reason=reason,
    )


def is_eligible(user_age: AgeInput, job_risk_category: Union[RiskCategory, str], policy: AgePolicy) -> bool:
    return evaluate(user_age, job_risk_category, policy).eligible


def enforce_age_baseline(requested_age: int, risk_category: Union[RiskCategory, str], policy: AgePolicy) -> BaselineDecision:
    baseline = max(min_age_for_risk(risk_category, policy), PLATFORM_MINIMUM_AGE)
    if requested_age < baseline:
        return BaselineDecision(final_age=baseline, was_adjusted=True, baseline_age=baseline)
    return BaselineDecision(final_age=requested_age, was_adjusted=False, baseline_age=baseline)


def job_age_defaults(category: Optional[str], policy: AgePolicy, standard_slug: Optional[str] = None) -> JobAgeDefaults:
    risk = risk_for_category(category, standard_slug)
    return JobAgeDefaults(
        minimum_age=max(min_age_for_risk(risk, policy), PLATFORM_MINIMUM_AGE),
        risk_category=risk,
        policy_version=policy.version,
    )


def next_age_unlock(age: int, policy: AgePolicy) -> Optional[int]:
    """Smallest policy minimum age above ``age``; None once every job is visible."""
    thresholds = sorted({policy.min_age_for(r) for r in RISK_SEVERITY if policy.min_age_for(r) is not None})
    for threshold in thresholds:
        if age < threshold:
            return threshold
    return None
