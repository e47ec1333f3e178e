from datetime import date

import pytest

from sprout_engines.age_policy.categories import risk_for_category
from sprout_engines.age_policy.gate import (
    AgeBand,
    compute_age_years,
    enforce_age_baseline,
    evaluate,
    is_eligible,
    job_age_defaults,
    next_age_unlock,
    resolve_age,
    youth_band_for_age,
)
from sprout_engines.age_policy.models import RiskCategory
from sprout_engines.age_policy.repository import InMemoryAgePolicyRepository
from sprout_engines.age_policy.service import AgePolicyService
from sprout_engines.common.errors import UnknownRiskCategory


@pytest.fixture
def policy():
    return AgePolicyService(repo=InMemoryAgePolicyRepository()).bootstrap()


@pytest.mark.parametrize(
    "age,risk,expected",
    [
        (15, RiskCategory.LOW_RISK, True),
        (14, RiskCategory.LOW_RISK, False),
        (17, RiskCategory.HIGH_RISK, False),
        (18, RiskCategory.HIGH_RISK, True),
        (16, "MEDIUM_RISK", True),
        (15, "MEDIUM_RISK", False),
    ],
)
def test_seeded_policy_thresholds(policy, age, risk, expected) -> None:
    assert is_eligible(age, risk, policy) is expected


def test_high_risk_job_unlocks_at_eighteen() -> None:
    service = AgePolicyService(repo=InMemoryAgePolicyRepository())
    policy = service.bootstrap()
    job_risk = risk_for_category("BABYSITTING")
    assert job_risk == RiskCategory.HIGH_RISK
    assert is_eligible(17, job_risk, service.get_active_policy()) is False
    assert is_eligible(18, job_risk, policy) is True


def test_band_resolves_to_its_floor(policy) -> None:
    decision = evaluate(AgeBand.AGE_16_17, RiskCategory.MEDIUM_RISK, policy)
    assert decision.eligible and decision.age_floor == 16
    assert not is_eligible("AGE_16_17", RiskCategory.HIGH_RISK, policy)
    assert is_eligible("AGE_18_20", RiskCategory.HIGH_RISK, policy)
    assert not is_eligible(AgeBand.UNDER_16, RiskCategory.LOW_RISK, policy)


@pytest.mark.parametrize("age", [None, AgeBand.UNKNOWN, "NOT_A_BAND", -3])
def test_unknown_age_is_never_eligible(policy, age) -> None:
    decision = evaluate(age, RiskCategory.LOW_RISK, policy)
    assert decision.eligible is False
    assert decision.age_floor is None
    assert decision.reason == "Age verification required"


def test_decision_records_policy_version(policy) -> None:
    decision = evaluate(17, RiskCategory.HIGH_RISK, policy)
    assert decision.policy_version == 1
    assert decision.required_min_age == 18
    assert "below minimum requirement of 18" in decision.reason


def test_unknown_risk_category(policy) -> None:
    with pytest.raises(UnknownRiskCategory):
        is_eligible(18, "EXTREME_RISK", policy)


def test_bool_age_is_rejected() -> None:
    with pytest.raises(TypeError):
        resolve_age(True)


def test_compute_age_years() -> None:
    assert compute_age_years(date(2008, 6, 15), today=date(2024, 6, 14)) == 15
    assert compute_age_years(date(2008, 6, 15), today=date(2024, 6, 15)) == 16
    assert compute_age_years(date(2008, 2, 29), today=date(2025, 2, 28)) == 16
    assert compute_age_years(date(2008, 2, 29), today=date(2025, 3, 1)) == 17


def test_youth_bands() -> None:
    assert youth_band_for_age(15) == AgeBand.UNDER_16
    assert youth_band_for_age(17) == AgeBand.AGE_16_17
    assert youth_band_for_age(20) == AgeBand.AGE_18_20
    assert youth_band_for_age(21) == AgeBand.OVER_20


def test_enforce_age_baseline(policy) -> None:
    adjusted = enforce_age_baseline(15, RiskCategory.HIGH_RISK, policy)
    assert adjusted.was_adjusted and adjusted.final_age == 18
    kept = enforce_age_baseline(17, RiskCategory.MEDIUM_RISK, policy)
    assert not kept.was_adjusted and kept.final_age == 17


def test_job_age_defaults(policy) -> None:
    defaults = job_age_defaults("DOG_WALKING", policy)
    assert defaults.risk_category == RiskCategory.MEDIUM_RISK
    assert defaults.minimum_age == 16
    slug_wins = job_age_defaults("TECH_HELP", policy, standard_slug="child-family-support")
    assert slug_wins.minimum_age == 18


def test_unmapped_category_defaults_to_low_risk(caplog) -> None:
    with caplog.at_level("WARNING"):
        assert risk_for_category("UNDERWATER_WELDING") == RiskCategory.LOW_RISK
    assert "UNDERWATER_WELDING" in caplog.text


def test_next_age_unlock(policy) -> None:
    assert next_age_unlock(14, policy) == 15
    assert next_age_unlock(16, policy) == 18
    assert next_age_unlock(18, policy) is None
