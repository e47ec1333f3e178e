from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from sprout_engines.config import runtime_config
from sprout_engines.messaging.models import IntentId, MessageRecord
from sprout_engines.storage.sqlite.migrator import connect


class MessageRepository(Protocol):
    def insert(self, record: MessageRecord) -> MessageRecord: ...
    def get(self, message_id: str) -> Optional[MessageRecord]: ...
    def list(self, conversation_id: Optional[str] = None) -> List[MessageRecord]: ...
    def mark_legacy_unclassified(self) -> int:
        """Set is_legacy on every record with no intent that is not yet legacy; return the count."""
        ...


class InMemoryMessageRepository:
    def __init__(self) -> None:
        self._items: Dict[str, MessageRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: MessageRecord) -> MessageRecord:
        with self._lock:
            if record.id in self._items:
                raise ValueError(f"message {record.id} already exists")
            self._items[record.id] = record.model_copy(deep=True)
        return record

    def get(self, message_id: str) -> Optional[MessageRecord]:
        with self._lock:
            item = self._items.get(message_id)
            return item.model_copy(deep=True) if item else None

    def list(self, conversation_id: Optional[str] = None) -> List[MessageRecord]:
        with self._lock:
            items = [
                m.model_copy(deep=True)
                for m in self._items.values()
                if conversation_id is None or m.conversation_id == conversation_id
            ]
        return sorted(items, key=lambda m: m.created_at)

    def mark_legacy_unclassified(self) -> int:
        with self._lock:
            count = 0
            for message_id, item in self._items.items():
                if item.intent is None and not item.is_legacy:
                    self._items[message_id] = item.model_copy(update={"is_legacy": True})
                    count += 1
            return count


class SqliteMessageRepository:
    def __init__(self, conn: Optional[sqlite3.Connection] = None) -> None:
        self._conn = conn or connect(runtime_config.get_sqlite_path())
        self._lock = threading.Lock()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MessageRecord:
        return MessageRecord(
            id=row["id"],
            intent=IntentId(row["intent"]) if row["intent"] else None,
            rendered_text=row["rendered_text"],
            variables=json.loads(row["variables_json"] or "{}"),
            sender_id=row["sender_id"],
            conversation_id=row["conversation_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            is_legacy=bool(row["is_legacy"]),
        )

    def insert(self, record: MessageRecord) -> MessageRecord:
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO messages (id, conversation_id, sender_id, intent, rendered_text, variables_json, is_legacy, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.conversation_id,
                        record.sender_id,
                        record.intent.value if record.intent else None,
                        record.rendered_text,
                        json.dumps(record.variables, sort_keys=True),
                        1 if record.is_legacy else 0,
                        record.created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"message {record.id} already exists") from exc
        return record

    def get(self, message_id: str) -> Optional[MessageRecord]:
        with self._lock:
            row = self._conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def list(self, conversation_id: Optional[str] = None) -> List[MessageRecord]:
        with self._lock:
            if conversation_id is None:
                rows = self._conn.execute("SELECT * FROM messages ORDER BY created_at").fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT * FROM messages WHERE conversation_id = ? ORDER BY created_at",
                    (conversation_id,),
                ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def mark_legacy_unclassified(self) -> int:
        # Single conditional UPDATE; concurrent runs cannot double count.
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE messages SET is_legacy = 1 WHERE intent IS NULL AND is_legacy = 0"
            )
            return cursor.rowcount


def message_repo_from_env() -> MessageRepository:
    backend = runtime_config.get_message_backend()
    if backend == runtime_config.BACKEND_SQLITE:
        return SqliteMessageRepository()
    return InMemoryMessageRepository()
