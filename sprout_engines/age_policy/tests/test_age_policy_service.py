import threading

import pytest

from sprout_engines.age_policy.models import DEFAULT_POLICY_RULES, PolicyStatus, RiskCategory
from sprout_engines.age_policy.repository import (
    InMemoryAgePolicyRepository,
    SqliteAgePolicyRepository,
    age_policy_repo_from_env,
)
from sprout_engines.age_policy.service import BOOTSTRAP_DESCRIPTION, AgePolicyService, validate_policy_json
from sprout_engines.common.errors import InvalidPolicyShape, NoActivePolicy
from sprout_engines.common.identity import RequestContext
from sprout_engines.logging.audit import AuditAction
from sprout_engines.storage.sqlite.migrator import connect


def _rules(low: int = 15, medium: int = 16, high: int = 18) -> dict:
    return {"LOW_RISK": {"minAge": low}, "MEDIUM_RISK": {"minAge": medium}, "HIGH_RISK": {"minAge": high}}


class RecordingSink:
    def __init__(self) -> None:
        self.events = []

    def __call__(self, event):
        self.events.append(event)
        return {"status": "accepted"}


def _assert_single_active(service: AgePolicyService) -> None:
    active = [p for p in service.list_versions() if p.status == PolicyStatus.ACTIVE]
    assert len(active) == 1


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryAgePolicyRepository()
    return SqliteAgePolicyRepository(connect(tmp_path / "policies.db"))


def test_no_active_policy_before_bootstrap(repo) -> None:
    service = AgePolicyService(repo=repo)
    with pytest.raises(NoActivePolicy):
        service.get_active_policy()


def test_bootstrap_seeds_v1_once(repo) -> None:
    sink = RecordingSink()
    service = AgePolicyService(repo=repo, audit_sink=sink)
    first = service.bootstrap()
    second = service.bootstrap()
    assert first.version == 1 and second.id == first.id
    assert first.description == BOOTSTRAP_DESCRIPTION
    assert first.created_by is None
    assert first.rules_json() == DEFAULT_POLICY_RULES
    assert len(service.list_versions()) == 1
    assert len(sink.events) == 1


def test_create_initial_refuses_when_active(repo) -> None:
    rules = validate_policy_json(_rules())
    first = repo.create_initial(rules, "first", None)
    assert first is not None and first.version == 1
    assert repo.create_initial(rules, "second", None) is None
    assert [p.version for p in repo.list_versions()] == [1]


def test_bootstrap_losing_race_does_not_audit(repo) -> None:
    class LateReader:
        """Reports no ACTIVE policy on the first read, as if another worker inserts right after it."""

        def __init__(self, inner) -> None:
            self._inner = inner
            self._reads = 0

        def get_active(self):
            self._reads += 1
            if self._reads == 1:
                self._inner.create_active(validate_policy_json(_rules()), "other worker", None)
                return None
            return self._inner.get_active()

        def __getattr__(self, name):
            return getattr(self._inner, name)

    sink = RecordingSink()
    service = AgePolicyService(repo=LateReader(repo), audit_sink=sink)
    policy = service.bootstrap()
    assert policy.description == "other worker"
    assert sink.events == []
    assert len(repo.list_versions()) == 1


def test_versions_increase_with_one_active(repo) -> None:
    service = AgePolicyService(repo=repo)
    service.bootstrap()
    seen = [1]
    for low in (15, 16, 15):
        policy = service.create_version(_rules(low=low, medium=17), description=f"low {low}", created_by="admin_1")
        assert policy.version > seen[-1]
        seen.append(policy.version)
        _assert_single_active(service)
        assert service.get_active_policy().id == policy.id
    assert seen == [1, 2, 3, 4]
    assert [p.status for p in service.list_versions()] == [PolicyStatus.ARCHIVED] * 3 + [PolicyStatus.ACTIVE]
    assert service.get_version(3).policy_json[RiskCategory.LOW_RISK].min_age == 16


def test_create_version_emits_audit_event(repo) -> None:
    sink = RecordingSink()
    service = AgePolicyService(repo=repo, audit_sink=sink)
    service.bootstrap()
    ctx = RequestContext(tenant_id="t_sprout", user_id="admin_1", membership_role="admin")
    policy = service.create_version(_rules(high=19), created_by="admin_1", ctx=ctx)
    event = sink.events[-1]
    assert event.action == AuditAction.age_policy_version_created
    assert event.actor_id == "admin_1" and event.actor_type == "human"
    assert event.target_id == str(policy.version)
    assert event.metadata["previous_version"] == 1
    assert event.metadata["rules"]["HIGH_RISK"] == {"minAge": 19}
    assert event.tenant_id == "t_sprout"


def test_concurrent_create_version_keeps_single_active(repo) -> None:
    service = AgePolicyService(repo=repo)
    service.bootstrap()
    errors = []

    def worker(n: int) -> None:
        try:
            service.create_version(_rules(high=18 + n % 3))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    versions = [p.version for p in service.list_versions()]
    assert versions == list(range(1, 10))
    _assert_single_active(service)


@pytest.mark.parametrize(
    "raw",
    [
        {"LOW_RISK": {"minAge": 15}, "MEDIUM_RISK": {"minAge": 16}},
        {**_rules(), "EXTREME_RISK": {"minAge": 21}},
        _rules(low=17, medium=16),
        {**_rules(), "LOW_RISK": {"minAge": -1}},
        {**_rules(), "LOW_RISK": {"minAge": "15"}},
        {**_rules(), "LOW_RISK": {"minAge": True}},
        {**_rules(), "LOW_RISK": {"min_age": 15}},
        {**_rules(), "LOW_RISK": {"minAge": 15, "maxAge": 20}},
        {**_rules(), "LOW_RISK": 15},
        ["LOW_RISK"],
    ],
)
def test_invalid_policy_shapes(raw) -> None:
    with pytest.raises(InvalidPolicyShape):
        validate_policy_json(raw)


def test_invalid_version_leaves_store_unchanged(repo) -> None:
    service = AgePolicyService(repo=repo)
    active = service.bootstrap()
    with pytest.raises(InvalidPolicyShape):
        service.create_version(_rules(high=14))
    assert service.get_active_policy().id == active.id
    assert len(service.list_versions()) == 1


def test_equal_minimum_ages_are_allowed() -> None:
    rules = validate_policy_json(_rules(low=16, medium=16, high=16))
    assert {r.min_age for r in rules.values()} == {16}


def test_sqlite_store_survives_reconnect(tmp_path) -> None:
    path = tmp_path / "policies.db"
    service = AgePolicyService(repo=SqliteAgePolicyRepository(connect(path)))
    service.bootstrap()
    service.create_version(_rules(high=19), description="raise high risk", created_by="admin_1")

    reopened = AgePolicyService(repo=SqliteAgePolicyRepository(connect(path)))
    active = reopened.bootstrap()
    assert active.version == 2
    assert active.description == "raise high risk"
    assert active.created_by == "admin_1"
    assert active.min_age_for(RiskCategory.HIGH_RISK) == 19


def test_repo_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("AGE_POLICY_BACKEND", "sqlite")
    monkeypatch.setenv("SPROUT_SQLITE_PATH", str(tmp_path / "env.db"))
    assert isinstance(age_policy_repo_from_env(), SqliteAgePolicyRepository)
    monkeypatch.setenv("AGE_POLICY_BACKEND", "memory")
    assert isinstance(age_policy_repo_from_env(), InMemoryAgePolicyRepository)
    monkeypatch.setenv("AGE_POLICY_BACKEND", "postgres")
    with pytest.raises(RuntimeError):
        age_policy_repo_from_env()
