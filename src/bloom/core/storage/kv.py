"""Concrete KeyValueStore implementations."""

from __future__ import annotations

import logging
import sqlite3

from bloom.core.storage import PersistenceReadError, PersistenceWriteError
from bloom.core.storage.database import TrackerDatabase
from bloom.core.storage.encryption import EncryptionError, ValueEncryptor

logger = logging.getLogger(__name__)

# Keys used by the tracker logs
MOOD_HISTORY_KEY = "moodHistory"
SYMPTOMS_KEY = "pregnancy-symptoms"
MEDICINE_HISTORY_KEY = "medicineHistory"
SELECTED_MEDICINES_KEY = "selectedMedicines"
USER_MEDICINES_KEY = "userMedicines"
TASKS_KEY = "wellness-tasks"
STAGE_KEY = "motherhood-stage"


class SQLiteKeyValueStore:
    """KeyValueStore backed by the ``kv_entries`` table.

    Values are optionally encrypted with a ValueEncryptor before they are
    written. Every write is committed immediately (last write wins).
    """

    def __init__(
        self, database: TrackerDatabase, encryptor: ValueEncryptor | None = None
    ) -> None:
        self._db = database
        self._enc = encryptor

    def get(self, key: str) -> str | None:
        try:
            row = self._db.connection.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceReadError(f"Failed to read {key!r}: {exc}") from exc

        if row is None:
            return None
        if self._enc is None:
            return row["value"]
        try:
            return self._enc.decrypt(row["value"])
        except EncryptionError as exc:
            raise PersistenceReadError(f"Failed to decrypt {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        stored = self._enc.encrypt(value) if self._enc is not None else value
        conn = self._db.connection
        try:
            conn.execute(
                """INSERT INTO kv_entries (key, value, updated_at)
                   VALUES (?, ?, datetime('now'))
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, stored),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Failed to write {key!r}: {exc}", key=key) from exc

    def remove(self, key: str) -> None:
        conn = self._db.connection
        try:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Failed to remove {key!r}: {exc}", key=key) from exc

    def keys(self) -> list[str]:
        rows = self._db.connection.execute(
            "SELECT key FROM kv_entries ORDER BY key"
        ).fetchall()
        return [row[0] for row in rows]


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore. Always available, never durable."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
