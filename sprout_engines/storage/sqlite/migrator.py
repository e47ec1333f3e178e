"""SQLite schema migration helpers for age policies and messages.

Responsibilities:
  - Create/upgrade schema deterministically.
Must not:
  - Embed business logic; migrations only.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Union


def apply_migrations(conn: sqlite3.Connection) -> None:
    migrations_dir = Path(__file__).resolve().parent / "migrations"
    for migration in sorted(migrations_dir.glob("*.sql")):
        sql_text = migration.read_text()
        conn.executescript(sql_text)


def connect(path: Union[str, Path]) -> sqlite3.Connection:
    """Open a connection in autocommit mode so callers own transaction boundaries."""
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False, timeout=30)
    conn.row_factory = sqlite3.Row
    apply_migrations(conn)
    return conn
