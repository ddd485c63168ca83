"""Tracker session — wires stage, routing, logs and the gesture navigator.

The router owns the current destination. Tracker page ids are tracker
routes: while one is current a GestureNavigator is mounted and mirrors it;
any other destination (e.g. the task list after completing a page) unmounts
the navigator. Stage changes re-compute the mounted navigator's pages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

from bloom.core.config.settings import Settings
from bloom.core.routing.router import Router
from bloom.core.storage import KeyValueStore
from bloom.core.storage.entry_log import DEFAULT_RETENTION_LIMIT, DailyAggregateLog, EntryLog
from bloom.core.storage.kv import (
    MEDICINE_HISTORY_KEY,
    MOOD_HISTORY_KEY,
    SYMPTOMS_KEY,
    TASKS_KEY,
)
from bloom.domains.wellness.adapters.medicine import MedicineChecklist
from bloom.domains.wellness.adapters.mood import MoodLog
from bloom.domains.wellness.adapters.symptoms import SymptomLog
from bloom.domains.wellness.adapters.tasks import TaskBoard
from bloom.domains.wellness.completion import (
    DONE_DESTINATION,
    CompletionResult,
    PageCompletion,
)
from bloom.domains.wellness.navigator import DEFAULT_COMMIT_THRESHOLD, GestureNavigator
from bloom.domains.wellness.pages.catalog import Page, PageCatalog, load_page_catalog
from bloom.domains.wellness.stage import StageStore
from bloom.domains.wellness.visibility import Stage

logger = logging.getLogger(__name__)


class NoTrackerOpenError(RuntimeError):
    """A navigator operation was attempted while no tracker page is open."""


class TrackerSession:
    """One user's tracker state over a KeyValueStore.

    Usage::

        session = TrackerSession(store)
        session.load()
        nav = session.open("mood-tracker")
        nav.go_next()
        result = await session.complete({...})
        await session.shutdown()
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        catalog: PageCatalog | None = None,
        default_stage: Stage = Stage.INCUBATOR,
        threshold: float = DEFAULT_COMMIT_THRESHOLD,
        retention_limit: int = DEFAULT_RETENTION_LIMIT,
        autosave_delay: float = 0.5,
        completion_delay: float = 1.0,
        notify: Callable[[str, str], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._catalog = catalog or load_page_catalog()
        self._threshold = threshold
        self._notify = notify
        self._clock = clock
        self.notifications: list[tuple[str, str]] = []

        self.router = Router(DONE_DESTINATION)
        self.stage = StageStore(store, default=default_stage)

        self.moods = EntryLog(store, MOOD_HISTORY_KEY, clock=clock)
        self.symptoms = EntryLog(store, SYMPTOMS_KEY, clock=clock)
        self.tasks = EntryLog(store, TASKS_KEY, clock=clock)
        self.medicine_history = DailyAggregateLog(
            store, MEDICINE_HISTORY_KEY, retention_limit=retention_limit, clock=clock
        )

        self.mood_log = MoodLog(self.moods)
        self.symptom_log = SymptomLog(self.symptoms, clock=clock)
        self.task_board = TaskBoard(self.tasks, clock=clock)
        self.medicine = MedicineChecklist(
            self.medicine_history, store, autosave_delay=autosave_delay, clock=clock
        )
        self.completion = PageCompletion(
            self.tasks,
            self.router.navigate_to,
            notify=self._record_notification,
            settle_delay=completion_delay,
        )

        self._navigator: GestureNavigator | None = None
        self.router.subscribe(self._on_route)
        self.stage.subscribe(self._on_stage_change)

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings: Settings, **kwargs: Any) -> TrackerSession:
        return cls(
            store,
            default_stage=Stage.parse(settings.default_stage),
            threshold=settings.swipe_commit_threshold,
            retention_limit=settings.daily_retention_limit,
            autosave_delay=settings.autosave_delay_seconds,
            completion_delay=settings.completion_delay_seconds,
            **kwargs,
        )

    @property
    def catalog(self) -> PageCatalog:
        return self._catalog

    @property
    def navigator(self) -> GestureNavigator | None:
        return self._navigator

    def today(self) -> date:
        """Calendar day according to the session clock."""
        return self._clock().date()

    def require_navigator(self) -> GestureNavigator:
        if self._navigator is None:
            raise NoTrackerOpenError("No tracker page is open")
        return self._navigator

    def load(self) -> None:
        """Hydrate the stage and every log from the store."""
        self.stage.load()
        counts = {
            log.key: log.load()
            for log in (self.moods, self.symptoms, self.tasks, self.medicine_history)
        }
        self.medicine.open()
        logger.info("Session loaded (stage=%s, records=%s)", self.stage.current.value, counts)

    def visible_pages(self) -> list[Page]:
        return self._catalog.select(self.stage.visible_pages())

    # ------------------------------------------------------------------
    # Navigator lifecycle
    # ------------------------------------------------------------------

    def open(self, page_id: str) -> GestureNavigator:
        """Open the tracker strip at ``page_id`` (mounting the navigator)."""
        if page_id not in self._catalog:
            raise ValueError(f"Unknown tracker page: {page_id!r}")
        if self._navigator is not None:
            self.router.navigate_to(page_id, replace_history=True)
            return self._navigator
        self.router.navigate_to(page_id)
        return self.require_navigator()

    def close(self) -> None:
        """Leave the tracker strip for the task list."""
        if self._navigator is not None:
            self.router.navigate_to(DONE_DESTINATION)

    def _on_route(self, destination: str) -> None:
        if destination not in self._catalog:
            if self._navigator is not None:
                logger.debug("Unmounting navigator for %s", destination)
                self._navigator = None
            return
        if self._navigator is None:
            pages = self.visible_pages()
            if destination not in {p.id for p in pages}:
                logger.warning(
                    "Tracker %s is not enabled for %s; opening %s instead",
                    destination, self.stage.current.value, pages[0].id,
                )
                self.router.navigate_to(pages[0].id, replace_history=True)
                return
            self._navigator = GestureNavigator(
                pages,
                self.router.navigate_to,
                destination,
                threshold=self._threshold,
            )
        else:
            self._navigator.sync(destination)

    def _on_stage_change(self, stage: Stage) -> None:
        if self._navigator is not None:
            self._navigator.set_pages(self.visible_pages())

    def set_stage(self, stage: Stage) -> None:
        self.stage.set_stage(stage)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete(self, payload: Mapping[str, Any] | None = None) -> CompletionResult:
        """Complete the page the navigator is showing."""
        page = self.require_navigator().current_page
        return await self.completion.complete(page, payload)

    def _record_notification(self, title: str, description: str) -> None:
        self.notifications.append((title, description))
        if self._notify is not None:
            self._notify(title, description)

    async def shutdown(self) -> None:
        """Flush pending auto-saves."""
        self.medicine.close()
