"""Task views over the ``wellness-tasks`` log (appointments, tests, reminders)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from bloom.core.storage.entry_log import EntryLog
from bloom.core.storage.models import Entry

logger = logging.getLogger(__name__)


def scheduled_date(entry: Entry) -> date | None:
    """The task's scheduled day, or None when missing or unparseable."""
    raw = entry.payload.get("date")
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except (TypeError, ValueError):
        logger.warning("Task %s has an unreadable date %r; treating it as unscheduled", entry.id, raw)
        return None


class TaskBoard:
    """Read-side helpers for tasks recorded by completed tracker pages.

    A task is upcoming when its scheduled date is today or later and past
    when it is earlier; tasks without a readable scheduled date are neither.
    """

    def __init__(self, log: EntryLog, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._log = log
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    def by_type(self, task_type: str | None = None) -> list[Entry]:
        return [
            e for e in self._log.entries()
            if task_type is None or e.payload.get("type") == task_type
        ]

    def _scheduled(self, task_type: str | None) -> list[tuple[Entry, date]]:
        pairs = []
        for entry in self.by_type(task_type):
            scheduled = scheduled_date(entry)
            if scheduled is not None:
                pairs.append((entry, scheduled))
        return pairs

    def upcoming(self, task_type: str | None = None) -> list[Entry]:
        today = self._today()
        return [e for e, scheduled in self._scheduled(task_type) if scheduled >= today]

    def past(self, task_type: str | None = None) -> list[Entry]:
        today = self._today()
        return [e for e, scheduled in self._scheduled(task_type) if scheduled < today]

    def recent(self, task_type: str | None = None, limit: int = 3) -> list[Entry]:
        """Newest tasks by scheduled date, falling back to the creation day."""

        def sort_key(e: Entry) -> tuple[str, int]:
            scheduled = scheduled_date(e)
            return (scheduled.isoformat() if scheduled else e.date_key, e.created_at)

        return sorted(self.by_type(task_type), key=sort_key, reverse=True)[:limit]

    def summary(self, task_type: str | None = None) -> dict[str, int]:
        today = self._today()
        upcoming = completed = 0
        for entry in self.by_type(task_type):
            scheduled = scheduled_date(entry)
            if entry.payload.get("status") == "completed" or (
                scheduled is not None and scheduled < today
            ):
                completed += 1
            elif scheduled is not None:
                upcoming += 1
        return {"upcoming": upcoming, "completed": completed}
