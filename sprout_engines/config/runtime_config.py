"""Runtime configuration helpers for the safety engines."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

BACKEND_MEMORY = "memory"
BACKEND_SQLITE = "sqlite"
_BACKENDS = frozenset({BACKEND_MEMORY, BACKEND_SQLITE})


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def _backend(name: str) -> str:
    value = (_get_env(name) or BACKEND_MEMORY).lower()
    if value not in _BACKENDS:
        raise RuntimeError(f"{name} must be one of {sorted(_BACKENDS)}, got: {value}")
    return value


def get_age_policy_backend() -> str:
    return _backend("AGE_POLICY_BACKEND")


def get_message_backend() -> str:
    return _backend("MESSAGE_BACKEND")


def get_sqlite_path() -> Path:
    return Path(_get_env("SPROUT_SQLITE_PATH") or Path.cwd() / "var" / "sprout_safety.db")


def audit_strict() -> bool:
    return _get_env("AUDIT_STRICT") == "1"
