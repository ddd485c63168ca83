"""Data models for the tracker persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Entry:
    """A single timestamped user-submitted record (mood, symptom, task, ...).

    Entries are immutable once created; the only mutation a log supports is
    deleting them.
    """

    id: str
    created_at: int  # epoch milliseconds
    date_key: str  # 'YYYY-MM-DD', local calendar day
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.created_at,
            "date": self.date_key,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entry:
        """Build an Entry from its persisted form.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        payload = data.get("payload", {})
        if not isinstance(payload, dict):
            raise TypeError("Entry payload must be an object")
        return cls(
            id=str(data["id"]),
            created_at=int(data["timestamp"]),
            date_key=_checked_date_key(data),
            payload=payload,
        )


@dataclass(frozen=True)
class DailyAggregate:
    """One-per-calendar-day summary, e.g. which medicines were taken that day."""

    date_key: str
    items: tuple[str, ...] = ()
    created_at: int = 0  # epoch milliseconds of the latest upsert

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date_key,
            "items": list(self.items),
            "timestamp": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyAggregate:
        items = data.get("items", [])
        if not isinstance(items, list):
            raise TypeError("Aggregate items must be a list")
        return cls(
            date_key=_checked_date_key(data),
            items=tuple(str(item) for item in items),
            created_at=int(data["timestamp"]),
        )


def _checked_date_key(data: dict[str, Any]) -> str:
    """Return the record's 'date' field, rejecting anything but YYYY-MM-DD."""
    date_key = str(data["date"])
    date.fromisoformat(date_key)
    return date_key
