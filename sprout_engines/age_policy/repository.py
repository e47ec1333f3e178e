from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from sprout_engines.age_policy.models import AgePolicy, PolicyStatus, RiskCategory, RiskRule
from sprout_engines.config import runtime_config
from sprout_engines.storage.sqlite.migrator import connect

PolicyRules = Dict[RiskCategory, RiskRule]


class AgePolicyRepository(Protocol):
    def get_active(self) -> Optional[AgePolicy]: ...
    def get_version(self, version: int) -> Optional[AgePolicy]: ...
    def list_versions(self) -> List[AgePolicy]: ...
    def create_active(self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]) -> AgePolicy:
        """Archive the ACTIVE version and insert a new ACTIVE one as one atomic step."""
        ...

    def create_initial(
        self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]
    ) -> Optional[AgePolicy]:
        """Insert an ACTIVE policy only when nothing is ACTIVE; None when another writer got there first."""
        ...


class InMemoryAgePolicyRepository:
    def __init__(self) -> None:
        self._items: Dict[int, AgePolicy] = {}
        self._lock = threading.Lock()

    def _active_unlocked(self) -> Optional[AgePolicy]:
        active = [p for p in self._items.values() if p.status == PolicyStatus.ACTIVE]
        return max(active, key=lambda p: p.version) if active else None

    def get_active(self) -> Optional[AgePolicy]:
        with self._lock:
            return self._active_unlocked()

    def get_version(self, version: int) -> Optional[AgePolicy]:
        with self._lock:
            return self._items.get(version)

    def list_versions(self) -> List[AgePolicy]:
        with self._lock:
            return [self._items[v] for v in sorted(self._items)]

    def _insert_unlocked(
        self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]
    ) -> AgePolicy:
        current = self._active_unlocked()
        next_version = max(self._items, default=0) + 1
        if current:
            self._items[current.version] = current.model_copy(update={"status": PolicyStatus.ARCHIVED})
        policy = AgePolicy(
            version=next_version,
            status=PolicyStatus.ACTIVE,
            policy_json=dict(rules),
            description=description,
            created_by=created_by,
        )
        self._items[next_version] = policy
        return policy

    def create_active(self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]) -> AgePolicy:
        with self._lock:
            return self._insert_unlocked(rules, description, created_by)

    def create_initial(
        self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]
    ) -> Optional[AgePolicy]:
        with self._lock:
            if self._active_unlocked() is not None:
                return None
            return self._insert_unlocked(rules, description, created_by)


class SqliteAgePolicyRepository:
    """SQLite store; a partial unique index keeps a single ACTIVE row."""

    def __init__(self, conn: Optional[sqlite3.Connection] = None) -> None:
        self._conn = conn or connect(runtime_config.get_sqlite_path())
        self._lock = threading.Lock()

    @staticmethod
    def _row_to_policy(row: sqlite3.Row) -> AgePolicy:
        raw = json.loads(row["policy_json"])
        return AgePolicy(
            id=row["id"],
            version=row["version"],
            status=PolicyStatus(row["status"]),
            policy_json={RiskCategory(k): RiskRule(min_age=v["minAge"]) for k, v in raw.items()},
            description=row["description"],
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _select_active(self) -> Optional[sqlite3.Row]:
        return self._conn.execute(
            "SELECT * FROM age_policies WHERE status = 'ACTIVE' ORDER BY version DESC LIMIT 1"
        ).fetchone()

    def get_active(self) -> Optional[AgePolicy]:
        with self._lock:
            row = self._select_active()
        return self._row_to_policy(row) if row else None

    def get_version(self, version: int) -> Optional[AgePolicy]:
        with self._lock:
            row = self._conn.execute("SELECT * FROM age_policies WHERE version = ?", (version,)).fetchone()
        return self._row_to_policy(row) if row else None

    def list_versions(self) -> List[AgePolicy]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM age_policies ORDER BY version").fetchall()
        return [self._row_to_policy(r) for r in rows]

    def create_active(self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]) -> AgePolicy:
        return self._insert(rules, description, created_by, only_if_empty=False)

    def create_initial(
        self, rules: PolicyRules, description: Optional[str], created_by: Optional[str]
    ) -> Optional[AgePolicy]:
        return self._insert(rules, description, created_by, only_if_empty=True)

    def _insert(
        self,
        rules: PolicyRules,
        description: Optional[str],
        created_by: Optional[str],
        only_if_empty: bool,
    ) -> Optional[AgePolicy]:
        with self._lock:
            # IMMEDIATE takes the write lock up front so other connections serialize here.
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                if only_if_empty and self._select_active() is not None:
                    self._conn.execute("COMMIT")
                    return None
                (max_version,) = self._conn.execute(
                    "SELECT COALESCE(MAX(version), 0) FROM age_policies"
                ).fetchone()
                policy = AgePolicy(
                    version=max_version + 1,
                    status=PolicyStatus.ACTIVE,
                    policy_json=dict(rules),
                    description=description,
                    created_by=created_by,
                    created_at=datetime.now(timezone.utc),
                )
                self._conn.execute("UPDATE age_policies SET status = 'ARCHIVED' WHERE status = 'ACTIVE'")
                self._conn.execute(
                    """
                    INSERT INTO age_policies (id, version, status, policy_json, description, created_by, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        policy.id,
                        policy.version,
                        policy.status.value,
                        json.dumps(policy.rules_json(), sort_keys=True),
                        policy.description,
                        policy.created_by,
                        policy.created_at.isoformat(),
                    ),
                )
                self._conn.execute("COMMIT")
            except Exception:
                self._conn.execute("ROLLBACK")
                raise
        return policy


def age_policy_repo_from_env() -> AgePolicyRepository:
    backend = runtime_config.get_age_policy_backend()
    if backend == runtime_config.BACKEND_SQLITE:
        return SqliteAgePolicyRepository()
    return InMemoryAgePolicyRepository()
