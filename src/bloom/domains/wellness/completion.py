"""Page completion — validate a tracker form and record it as a task.

Simple pages complete with an acknowledgment only. Data-collecting pages
must supply every field in REQUIRED_FIELDS with a truthy value; the payload
is then stored as a pending task in the ``wellness-tasks`` log.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from bloom.core.storage import PersistenceWriteError
from bloom.core.storage.entry_log import EntryLog
from bloom.core.storage.models import Entry
from bloom.core.storage.weeks import to_date
from bloom.domains.wellness.navigator import NavigateFn
from bloom.domains.wellness.pages.catalog import (
    DOCTOR_APPOINTMENT,
    MEDICAL_TEST,
    MEDICINE_TRACKER,
    PERSONAL_REMINDER,
    Page,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    DOCTOR_APPOINTMENT: ("doctor_name", "specialty", "date"),
    MEDICINE_TRACKER: ("name", "type", "dosage"),
    MEDICAL_TEST: ("test_name", "test_type"),
    PERSONAL_REMINDER: ("title", "category", "description"),
}

# First present field wins.
TITLE_FIELDS: tuple[str, ...] = ("title", "name", "test_name")
DATE_FIELDS: tuple[str, ...] = ("date", "scheduled_date", "due_date")

# Where the user lands after completing any tracker page.
DONE_DESTINATION = "tasks"


class ValidationError(Exception):
    """Required payload fields are missing or unusable."""

    def __init__(self, page_id: str, fields: list[str], message: str = "") -> None:
        self.page_id = page_id
        self.missing_fields = fields
        super().__init__(message or f"Missing required fields: {', '.join(fields)}")


class CompletionInProgressError(RuntimeError):
    """A completion is already being confirmed."""


@dataclass
class CompletionResult:
    page_id: str
    message: str
    description: str
    entry: Entry | None = None
    persisted: bool = True
    destination: str = DONE_DESTINATION


def missing_fields(page_id: str, payload: Mapping[str, Any] | None) -> list[str]:
    payload = payload or {}
    return [name for name in REQUIRED_FIELDS.get(page_id, ()) if not payload.get(name)]


def validate_payload(page_id: str, payload: Mapping[str, Any] | None) -> None:
    """Raise ValidationError unless every required field has a truthy value."""
    missing = missing_fields(page_id, payload)
    if missing:
        raise ValidationError(page_id, missing)


def derive_title(payload: Mapping[str, Any]) -> str:
    for name in TITLE_FIELDS:
        if payload.get(name):
            return str(payload[name])
    if payload.get("doctor_name"):
        return f"{payload['doctor_name']} - {payload.get('specialty', '')}".rstrip(" -")
    return ""


def derive_date(payload: Mapping[str, Any]) -> tuple[str, date] | None:
    """The first present date field and its calendar day, if any."""
    for name in DATE_FIELDS:
        value = payload.get(name)
        if value:
            return name, to_date(value)
    return None


def build_task_entry(page: Page, payload: Mapping[str, Any]) -> Entry:
    """Turn a validated form payload into an unsaved task Entry.

    The entry's date key is the primary date from the payload; without one
    the log falls back to the creation day.

    Raises:
        ValidationError: If a date field cannot be parsed.
    """
    try:
        primary = derive_date(payload)
    except (TypeError, ValueError) as exc:
        raise ValidationError(page.id, list(DATE_FIELDS), f"Invalid date: {exc}") from exc

    day = primary[1] if primary else None
    task = {
        "type": page.id,
        "title": derive_title(payload),
        "date": day.isoformat() if day else None,
        "time": payload.get("time"),
        "status": "pending",
        "data": _jsonable(dict(payload)),
    }
    return Entry(id="", created_at=0, date_key=day.isoformat() if day else "", payload=task)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return value


class PageCompletion:
    """Runs the completion action for the page a navigator is showing.

    Usage::

        completion = PageCompletion(tasks, router.navigate_to, notify=print)
        result = await completion.complete(page, {"title": "Walk", ...})
    """

    def __init__(
        self,
        tasks: EntryLog,
        navigate: NavigateFn,
        *,
        notify: Callable[[str, str], None] | None = None,
        settle_delay: float = 1.0,
        done_destination: str = DONE_DESTINATION,
    ) -> None:
        self._tasks = tasks
        self._navigate = navigate
        self._notify = notify
        self._settle_delay = settle_delay
        self._done_destination = done_destination
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    async def complete(
        self, page: Page, payload: Mapping[str, Any] | None = None
    ) -> CompletionResult:
        """Validate, record, confirm, then navigate to the done destination.

        Raises:
            ValidationError: Nothing was recorded; the user must fix the form.
            CompletionInProgressError: Another completion is still settling.
        """
        if self._submitting:
            raise CompletionInProgressError("A completion is already in progress")

        entry: Entry | None = None
        persisted = True
        if page.data_collecting:
            validate_payload(page.id, payload)
            entry = build_task_entry(page, payload or {})
            try:
                entry = self._tasks.append(entry)
            except PersistenceWriteError as exc:
                entry = exc.record
                persisted = False
                logger.warning("Task for %s kept in memory only: %s", page.id, exc)

        self._submitting = True
        try:
            await asyncio.sleep(self._settle_delay)
            if self._notify is not None:
                self._notify(page.completion_message, page.completion_description)
            self._navigate(self._done_destination, replace_history=False)
        finally:
            self._submitting = False

        logger.info("Completed %s (entry=%s)", page.id, entry.id if entry else None)
        return CompletionResult(
            page_id=page.id,
            message=page.completion_message,
            description=page.completion_description,
            entry=entry,
            persisted=persisted,
            destination=self._done_destination,
        )
