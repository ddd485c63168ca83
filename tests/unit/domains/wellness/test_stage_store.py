"""Tests for StageStore persistence and notifications."""

from __future__ import annotations

import pytest

from bloom.core.storage import PersistenceWriteError
from bloom.core.storage.kv import STAGE_KEY, InMemoryKeyValueStore
from bloom.domains.wellness.stage import StageStore
from bloom.domains.wellness.visibility import Stage


class TestLoad:
    def test_default_when_absent(self, kv_store):
        store = StageStore(kv_store)
        assert store.load() is Stage.INCUBATOR

    def test_persisted_value(self):
        store = StageStore(InMemoryKeyValueStore({STAGE_KEY: "Trying to Conceive"}))
        assert store.load() is Stage.TRYING_TO_CONCEIVE

    def test_unknown_value_falls_back_to_default(self):
        store = StageStore(InMemoryKeyValueStore({STAGE_KEY: "Toddler"}), default=Stage.VETERAN)
        assert store.load() is Stage.VETERAN


class TestSetStage:
    def test_persists_and_notifies(self, kv_store):
        store = StageStore(kv_store)
        seen = []
        store.subscribe(seen.append)
        store.set_stage(Stage.VETERAN)
        assert store.current is Stage.VETERAN
        assert seen == [Stage.VETERAN]
        assert kv_store.get(STAGE_KEY) == "Veteran Stage"

    def test_same_stage_does_not_notify(self, kv_store):
        store = StageStore(kv_store)
        seen = []
        store.subscribe(seen.append)
        store.set_stage(Stage.INCUBATOR)
        assert seen == []

    def test_unsubscribe(self, kv_store):
        store = StageStore(kv_store)
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.set_stage(Stage.VETERAN)
        assert seen == []

    def test_write_failure_keeps_stage_for_session(self, failing_store):
        store = StageStore(failing_store)
        failing_store.fail_writes = True
        with pytest.raises(PersistenceWriteError) as exc_info:
            store.set_stage(Stage.TRYING_TO_CONCEIVE)
        assert exc_info.value.record is Stage.TRYING_TO_CONCEIVE
        assert store.current is Stage.TRYING_TO_CONCEIVE

    def test_visible_pages_follow_stage(self, kv_store):
        store = StageStore(kv_store)
        store.set_stage(Stage.TRYING_TO_CONCEIVE)
        assert store.visible_pages() == ("mood-tracker", "sleep-tracker", "medicine-tracker")
        assert not store.is_page_visible("doctor-appointment")
