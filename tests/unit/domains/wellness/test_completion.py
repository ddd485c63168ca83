"""Tests for page completion — validation, task creation, navigation."""

from __future__ import annotations

import asyncio

import pytest

from bloom.core.storage.entry_log import EntryLog
from bloom.core.storage.kv import TASKS_KEY
from bloom.domains.wellness.completion import (
    CompletionInProgressError,
    PageCompletion,
    ValidationError,
    build_task_entry,
    derive_title,
    missing_fields,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class _Harness:
    def __init__(self, store, clock, settle_delay: float = 0) -> None:
        self.tasks = EntryLog(store, TASKS_KEY, clock=clock)
        self.navigations: list[tuple[str, bool]] = []
        self.toasts: list[tuple[str, str]] = []
        self.completion = PageCompletion(
            self.tasks,
            self._navigate,
            notify=lambda title, desc: self.toasts.append((title, desc)),
            settle_delay=settle_delay,
        )

    def _navigate(self, destination: str, *, replace_history: bool = False) -> None:
        self.navigations.append((destination, replace_history))


APPOINTMENT = {
    "doctor_name": "Dr. Okafor",
    "specialty": "OB-GYN",
    "date": "2026-11-02",
    "time": "10:30",
}


class TestValidation:
    def test_missing_fields_listed_in_order(self):
        assert missing_fields("doctor-appointment", {"doctor_name": "Dr. Okafor"}) == [
            "specialty",
            "date",
        ]

    def test_blank_values_count_as_missing(self):
        assert missing_fields("medical-test", {"test_name": "", "test_type": "Blood"}) == [
            "test_name"
        ]

    def test_simple_pages_require_nothing(self):
        assert missing_fields("mood-tracker", None) == []

    def test_invalid_payload_records_nothing(self, kv_store, clock, catalog):
        h = _Harness(kv_store, clock)
        page = catalog.get("personal-reminder")
        with pytest.raises(ValidationError) as exc_info:
            _run(h.completion.complete(page, {"title": "Stretch"}))
        assert exc_info.value.missing_fields == ["category", "description"]
        assert len(h.tasks) == 0
        assert h.navigations == []
        assert h.toasts == []


class TestTaskEntries:
    def test_title_falls_back_to_doctor_and_specialty(self):
        assert derive_title(APPOINTMENT) == "Dr. Okafor - OB-GYN"

    def test_title_prefers_explicit_fields(self):
        assert derive_title({"test_name": "Glucose Screening"}) == "Glucose Screening"

    def test_entry_uses_scheduled_day(self, catalog):
        entry = build_task_entry(catalog.get("doctor-appointment"), APPOINTMENT)
        assert entry.date_key == "2026-11-02"
        assert entry.payload["type"] == "doctor-appointment"
        assert entry.payload["status"] == "pending"
        assert entry.payload["time"] == "10:30"
        assert entry.payload["data"] == APPOINTMENT

    def test_alternate_date_field(self, catalog):
        payload = {"test_name": "Ultrasound", "test_type": "Imaging", "scheduled_date": "2026-12-01T09:00:00"}
        entry = build_task_entry(catalog.get("medical-test"), payload)
        assert entry.payload["date"] == "2026-12-01"

    def test_unparseable_date_rejected(self, catalog):
        with pytest.raises(ValidationError, match="Invalid date"):
            build_task_entry(catalog.get("doctor-appointment"), {**APPOINTMENT, "date": "soon"})


class TestComplete:
    def test_data_page_records_task_then_navigates(self, kv_store, clock, catalog):
        h = _Harness(kv_store, clock)
        result = _run(h.completion.complete(catalog.get("doctor-appointment"), APPOINTMENT))
        assert result.persisted
        assert result.entry.payload["title"] == "Dr. Okafor - OB-GYN"
        assert h.tasks.entries() == [result.entry]
        assert h.toasts == [(result.message, result.description)]
        assert result.message == "Appointment Scheduled! 📅"
        assert h.navigations == [("tasks", False)]

    def test_simple_page_only_acknowledges(self, kv_store, clock, catalog):
        h = _Harness(kv_store, clock)
        result = _run(h.completion.complete(catalog.get("sleep-tracker")))
        assert result.entry is None
        assert len(h.tasks) == 0
        assert h.toasts == [("Sleep Tracked! 🌙", "Your sleep patterns have been successfully recorded.")]
        assert h.navigations == [("tasks", False)]

    def test_write_failure_still_completes(self, failing_store, clock, catalog):
        h = _Harness(failing_store, clock)
        failing_store.fail_writes = True
        payload = {"name": "Iron Supplement", "type": "Supplement", "dosage": "27 mg"}
        result = _run(h.completion.complete(catalog.get("medicine-tracker"), payload))
        assert result.persisted is False
        assert result.entry.payload["title"] == "Iron Supplement"
        assert len(h.tasks) == 1
        assert h.navigations == [("tasks", False)]

    def test_second_completion_while_settling_rejected(self, kv_store, clock, catalog):
        h = _Harness(kv_store, clock, settle_delay=0.05)
        page = catalog.get("mood-tracker")

        async def _both():
            return await asyncio.gather(
                h.completion.complete(page),
                h.completion.complete(page),
                return_exceptions=True,
            )

        first, second = _run(_both())
        assert first.page_id == "mood-tracker"
        assert isinstance(second, CompletionInProgressError)
        assert h.navigations == [("tasks", False)]
        assert not h.completion.is_submitting
