"""Time-windowed entry logs — persisted, most-recent-first record lists.

Each log owns one key in the KeyValueStore and holds the full log as a JSON
array under it. Logs are write-through: the in-memory list is mutated first
and then persisted whole. When the write fails the in-memory mutation is kept
and PersistenceWriteError is raised so the caller can warn the user.

Usage::

    moods = EntryLog(store, MOOD_HISTORY_KEY)
    moods.load()
    entry = moods.append({"mood": "happy"})
    this_week = moods.query_by_week(0)

    medicines = DailyAggregateLog(store, MEDICINE_HISTORY_KEY, retention_limit=30)
    medicines.load()
    medicines.upsert_daily("2026-10-19", ["Folic Acid", "Iron"])
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Generic, TypeVar

from bloom.core.storage import KeyValueStore, PersistenceReadError, PersistenceWriteError
from bloom.core.storage.models import DailyAggregate, Entry
from bloom.core.storage.weeks import date_key_for, filter_by_week

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_LIMIT = 30

R = TypeVar("R", Entry, DailyAggregate)


class _PersistedLog(Generic[R]):
    """Shared load/persist plumbing for a JSON array stored under one key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._key = key
        self._clock = clock
        self._records: list[R] = []

    @property
    def key(self) -> str:
        return self._key

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _today(self) -> date:
        return self._clock().date()

    def _decode_record(self, data: dict[str, Any]) -> R:
        raise NotImplementedError

    def _decode(self, raw: str) -> list[R]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"{self._key!r} is not valid JSON") from exc
        if not isinstance(data, list):
            raise PersistenceReadError(f"{self._key!r} does not hold a list")
        try:
            return [self._decode_record(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PersistenceReadError(f"{self._key!r} holds a malformed record: {exc}") from exc

    def load(self) -> int:
        """Hydrate the in-memory log from the store.

        Missing or malformed data yields an empty log instead of an error.

        Returns:
            Number of records loaded.
        """
        try:
            raw = self._store.get(self._key)
            self._records = [] if raw is None else self._decode(raw)
        except PersistenceReadError as exc:
            logger.warning("Discarding unreadable log %s: %s", self._key, exc)
            self._records = []
        return len(self._records)

    def _persist(self, record: Any = None) -> None:
        raw = json.dumps([r.to_dict() for r in self._records], separators=(",", ":"))
        try:
            self._store.set(self._key, raw)
        except PersistenceWriteError as exc:
            logger.warning("Write to %s did not succeed; keeping in-memory state", self._key)
            raise PersistenceWriteError(str(exc), key=self._key, record=record) from exc

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[R]:
        return iter(list(self._records))


class EntryLog(_PersistedLog[Entry]):
    """Append-only (plus delete) log of Entries, newest first."""

    def _decode_record(self, data: dict[str, Any]) -> Entry:
        return Entry.from_dict(data)

    def entries(self) -> list[Entry]:
        return list(self._records)

    def get(self, entry_id: str) -> Entry | None:
        for entry in self._records:
            if entry.id == entry_id:
                return entry
        return None

    def recent(self, limit: int = 3) -> list[Entry]:
        return self._records[:limit]

    def append(
        self, entry: Entry | Mapping[str, Any], *, date_key: str | None = None
    ) -> Entry:
        """Prepend an entry and persist the full log.

        Args:
            entry: An Entry, or a bare payload mapping. Missing id and
                creation timestamp are assigned here.
            date_key: Calendar day for a bare payload. Defaults to the day of
                the creation timestamp.

        Returns:
            The stored entry.

        Raises:
            PersistenceWriteError: The entry is in memory but was not persisted.
        """
        if not isinstance(entry, Entry):
            entry = Entry(id="", created_at=0, date_key=date_key or "", payload=dict(entry))

        if not entry.id:
            entry = replace(entry, id=str(uuid.uuid4()))
        if not entry.created_at:
            entry = replace(entry, created_at=self._now_ms())
        if not entry.date_key:
            entry = replace(entry, date_key=date_key_for(entry.created_at))

        self._records.insert(0, entry)
        logger.info("Appended entry %s to %s (date=%s)", entry.id, self._key, entry.date_key)
        self._persist(entry)
        return entry

    def delete_by_id(self, entry_id: str) -> bool:
        """Remove an entry. Deleting an unknown id is a no-op.

        Returns:
            True if an entry was removed.
        """
        remaining = [e for e in self._records if e.id != entry_id]
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        logger.info("Deleted entry %s from %s", entry_id, self._key)
        self._persist()
        return True

    def query_by_week(self, week_offset: int = 0, *, today: date | None = None) -> list[Entry]:
        """Entries whose calendar day falls in the week at ``week_offset``."""
        return filter_by_week(
            self._records, week_offset, today=today or self._today(), key=lambda e: e.date_key
        )


class DailyAggregateLog(_PersistedLog[DailyAggregate]):
    """One aggregate per calendar day, upserted, newest ``retention_limit`` kept.

    Older aggregates are evicted silently; that is the steady-state behavior
    of the rolling window, not an error.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        *,
        retention_limit: int = DEFAULT_RETENTION_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if retention_limit < 1:
            raise ValueError("retention_limit must be at least 1")
        super().__init__(store, key, clock=clock)
        self._retention_limit = retention_limit

    @property
    def retention_limit(self) -> int:
        return self._retention_limit

    def _decode_record(self, data: dict[str, Any]) -> DailyAggregate:
        return DailyAggregate.from_dict(data)

    def load(self) -> int:
        """Hydrate from the store, keeping the newest aggregate per day.

        Stored data is normalized the same way ``upsert_daily`` leaves it:
        one aggregate per date key, newest first, at most ``retention_limit``.
        """
        super().load()
        stored = len(self._records)
        ordered = sorted(self._records, key=lambda a: a.created_at, reverse=True)
        seen: set[str] = set()
        records = []
        for aggregate in ordered:
            if aggregate.date_key in seen:
                continue
            seen.add(aggregate.date_key)
            records.append(aggregate)
        self._records = records[: self._retention_limit]
        if len(self._records) != stored:
            logger.debug(
                "Normalized %s on load: %d stored, %d kept", self._key, stored, len(self._records)
            )
        return len(self._records)

    def aggregates(self) -> list[DailyAggregate]:
        return list(self._records)

    def get(self, date_key: str) -> DailyAggregate | None:
        for aggregate in self._records:
            if aggregate.date_key == date_key:
                return aggregate
        return None

    def upsert_daily(self, date_key: str, items: Iterable[str]) -> DailyAggregate:
        """Replace the aggregate for ``date_key`` (or insert it) and persist.

        Raises:
            PersistenceWriteError: The aggregate is in memory but was not persisted.
        """
        aggregate = DailyAggregate(
            date_key=date_key, items=tuple(items), created_at=self._now_ms()
        )
        # New aggregate first so it wins ties on timestamp.
        records = [aggregate] + [a for a in self._records if a.date_key != date_key]
        records.sort(key=lambda a: a.created_at, reverse=True)

        evicted = records[self._retention_limit:]
        if evicted:
            logger.debug(
                "Evicting %d aggregates from %s beyond retention limit %d",
                len(evicted), self._key, self._retention_limit,
            )
        self._records = records[: self._retention_limit]
        self._persist(aggregate)
        return aggregate

    def query_by_week(
        self, week_offset: int = 0, *, today: date | None = None
    ) -> list[DailyAggregate]:
        return filter_by_week(
            self._records, week_offset, today=today or self._today(), key=lambda a: a.date_key
        )
