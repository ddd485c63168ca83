"""Stage store — the persisted current Stage plus change notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable

from bloom.core.storage import KeyValueStore, PersistenceReadError, PersistenceWriteError
from bloom.core.storage.kv import STAGE_KEY
from bloom.domains.wellness.visibility import (
    Stage,
    UnknownStageError,
    is_page_visible,
    visible_pages,
)

logger = logging.getLogger(__name__)

StageListener = Callable[[Stage], None]


class StageStore:
    """Holds the current Stage, persisted under ``motherhood-stage``.

    An absent or unrecognized persisted value falls back to ``default``.
    Stage changes happen only through :meth:`set_stage`.
    """

    def __init__(self, store: KeyValueStore, default: Stage = Stage.INCUBATOR) -> None:
        self._store = store
        self._default = default
        self._current = default
        self._listeners: list[StageListener] = []

    @property
    def current(self) -> Stage:
        return self._current

    def load(self) -> Stage:
        try:
            raw = self._store.get(STAGE_KEY)
        except PersistenceReadError as exc:
            logger.warning("Could not read stage, using default: %s", exc)
            raw = None

        if raw is None:
            self._current = self._default
        else:
            try:
                self._current = Stage.parse(raw)
            except UnknownStageError:
                logger.warning("Ignoring unknown persisted stage %r", raw)
                self._current = self._default
        return self._current

    def set_stage(self, stage: Stage) -> None:
        """Adopt ``stage``, notify listeners, then persist.

        Raises:
            PersistenceWriteError: The stage is active for this session but
                was not persisted.
        """
        changed = stage != self._current
        self._current = stage
        if changed:
            logger.info("Stage changed to %s", stage.value)
            for listener in list(self._listeners):
                listener(stage)
        try:
            self._store.set(STAGE_KEY, stage.value)
        except PersistenceWriteError as exc:
            raise PersistenceWriteError(str(exc), key=STAGE_KEY, record=stage) from exc

    def subscribe(self, listener: StageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def visible_pages(self) -> tuple[str, ...]:
        return visible_pages(self._current)

    def is_page_visible(self, page_id: str) -> bool:
        return is_page_visible(self._current, page_id)
