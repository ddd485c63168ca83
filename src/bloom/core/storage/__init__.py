"""Key-value persistence interface — a narrow get/set/remove string store."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


class PersistenceReadError(Exception):
    """Raised when persisted data is absent, unreadable or malformed."""


class PersistenceWriteError(Exception):
    """Raised when a write did not durably succeed.

    The in-memory state that triggered the write is kept; ``record`` holds the
    record (entry, aggregate, stage, ...) whose write failed, when there is one.
    """

    def __init__(self, message: str, *, key: str = "", record: Any = None) -> None:
        super().__init__(message)
        self.key = key
        self.record = record


@runtime_checkable
class KeyValueStore(Protocol):
    """Abstract interface for the local key-value persistence layer.

    Logs call these methods without knowing whether values end up in SQLite,
    in memory, or somewhere else. Each key holds one JSON-serialized value.
    """

    def get(self, key: str) -> str | None:
        """Return the stored string, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a string under ``key``. Raises PersistenceWriteError on failure."""
        ...

    def remove(self, key: str) -> None:
        """Delete ``key``. Removing an absent key is a no-op."""
        ...

    def keys(self) -> list[str]:
        """Return all stored keys."""
        ...
