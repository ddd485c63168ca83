"""Tests for TrackerSession — stage, routing and navigator wired together."""

from __future__ import annotations

import asyncio

import pytest

from bloom.core.config.settings import Settings
from bloom.core.storage.kv import STAGE_KEY, InMemoryKeyValueStore
from bloom.domains.wellness.completion import ValidationError
from bloom.domains.wellness.session import NoTrackerOpenError, TrackerSession
from bloom.domains.wellness.visibility import Stage

WIDTH = 400.0


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def session(kv_store, catalog, clock) -> TrackerSession:
    s = TrackerSession(
        kv_store, catalog=catalog, completion_delay=0, autosave_delay=0.01, clock=clock
    )
    s.load()
    return s


class TestOpenAndClose:
    def test_starts_on_task_list(self, session):
        assert session.router.current == "tasks"
        assert session.navigator is None
        assert session.stage.current is Stage.INCUBATOR

    def test_open_mounts_navigator(self, session):
        nav = session.open("symptoms-tracker")
        assert session.router.current == "symptoms-tracker"
        assert nav.current_index == 2
        assert nav.page_count == 7
        assert session.router.history == ["tasks"]

    def test_open_hidden_page_redirects_to_first_visible(self, session):
        session.set_stage(Stage.TRYING_TO_CONCEIVE)
        nav = session.open("medical-test")
        assert session.router.current == "mood-tracker"
        assert nav.page_count == 3
        assert session.router.history == ["tasks"]

    def test_open_unknown_page(self, session):
        with pytest.raises(ValueError):
            session.open("yoga-tracker")

    def test_open_while_mounted_jumps_without_history(self, session):
        nav = session.open("mood-tracker")
        assert session.open("personal-reminder") is nav
        assert nav.current_index == 6
        assert session.router.history == ["tasks"]

    def test_close_unmounts(self, session):
        session.open("mood-tracker")
        session.close()
        assert session.router.current == "tasks"
        assert session.navigator is None
        with pytest.raises(NoTrackerOpenError):
            session.require_navigator()


class TestSwiping:
    def test_swipe_moves_router(self, session):
        nav = session.open("mood-tracker")
        nav.pointer_down(200, WIDTH)
        nav.pointer_move(60, WIDTH)
        nav.pointer_up()
        assert session.router.current == "sleep-tracker"
        assert nav.offset == -100

    def test_stage_change_reclamps_open_navigator(self, session):
        nav = session.open("medicine-tracker")
        session.set_stage(Stage.VETERAN)
        assert nav.page_count == 5
        assert nav.current_page.id == "medicine-tracker"
        assert nav.current_index == 3

    def test_stage_change_hiding_open_page(self, session):
        nav = session.open("symptoms-tracker")
        session.set_stage(Stage.TRYING_TO_CONCEIVE)
        assert session.router.current == "mood-tracker"
        assert nav.current_index == 0
        assert nav.page_count == 3


class TestComplete:
    def test_complete_appointment_creates_task(self, session):
        session.open("doctor-appointment")
        result = _run(session.complete({
            "doctor_name": "Dr. Okafor",
            "specialty": "OB-GYN",
            "date": "2026-10-25",
        }))
        assert result.persisted
        assert session.router.current == "tasks"
        assert session.navigator is None
        assert session.notifications == [(result.message, result.description)]
        assert session.task_board.summary() == {"upcoming": 1, "completed": 0}

    def test_invalid_form_stays_open(self, session):
        session.open("personal-reminder")
        with pytest.raises(ValidationError):
            _run(session.complete({"title": "Walk"}))
        assert session.router.current == "personal-reminder"
        assert len(session.tasks) == 0

    def test_complete_without_open_tracker(self, session):
        with pytest.raises(NoTrackerOpenError):
            _run(session.complete({}))

    def test_notify_callback(self, kv_store, catalog, clock):
        seen = []
        s = TrackerSession(
            kv_store,
            catalog=catalog,
            completion_delay=0,
            notify=lambda title, desc: seen.append(title),
            clock=clock,
        )
        s.open("mood-tracker")
        _run(s.complete())
        assert seen == ["Mood Tracked! ✨"]


class TestPersistence:
    def test_state_survives_new_session(self, kv_store, catalog, clock):
        first = TrackerSession(kv_store, catalog=catalog, completion_delay=0, clock=clock)
        first.load()
        first.set_stage(Stage.VETERAN)
        first.mood_log.log("content")
        first.open("personal-reminder")
        _run(first.complete({"title": "Prenatal yoga", "category": "Exercise", "description": "30 min"}))

        second = TrackerSession(kv_store, catalog=catalog, clock=clock)
        second.load()
        assert second.stage.current is Stage.VETERAN
        assert len(second.moods) == 1
        assert second.tasks.entries()[0].payload["title"] == "Prenatal yoga"

    def test_unknown_persisted_stage_uses_default(self, catalog, clock):
        store = InMemoryKeyValueStore({STAGE_KEY: "Nonsense"})
        s = TrackerSession(store, catalog=catalog, default_stage=Stage.VETERAN, clock=clock)
        s.load()
        assert s.stage.current is Stage.VETERAN

    def test_shutdown_flushes_medicine_autosave(self, kv_store, catalog, clock):
        s = TrackerSession(kv_store, catalog=catalog, autosave_delay=10, clock=clock)
        s.load()

        async def _check():
            s.medicine.toggle("Folic Acid")
            await s.shutdown()

        _run(_check())
        assert s.medicine_history.get("2026-10-19").items == ("Folic Acid",)

    def test_from_settings(self, kv_store, catalog):
        settings = Settings(default_stage="Trying to Conceive", swipe_commit_threshold=40)
        s = TrackerSession.from_settings(kv_store, settings, catalog=catalog)
        s.load()
        assert s.stage.current is Stage.TRYING_TO_CONCEIVE
        assert s.open("mood-tracker").threshold == 40
