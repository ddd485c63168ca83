"""In-process router — the single source of truth for the current destination.

Components never own "which page is active"; they call ``navigate_to`` and
mirror whatever the router reports back through ``subscribe``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class Router:
    """Tracks the current destination and a back-stack of previous ones.

    Usage::

        router = Router("tasks")
        unsubscribe = router.subscribe(lambda dest: print("now at", dest))
        router.navigate_to("mood-tracker")
        router.navigate_to("sleep-tracker", replace_history=True)
        router.back()  # -> "tasks"
    """

    def __init__(self, initial: str = "") -> None:
        self._current = initial
        self._history: list[str] = []
        self._listeners: list[Listener] = []

    @property
    def current(self) -> str:
        return self._current

    @property
    def history(self) -> list[str]:
        """Previous destinations, oldest first."""
        return list(self._history)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate_to(self, destination: str, *, replace_history: bool = False) -> None:
        """Move to ``destination`` and notify listeners.

        With ``replace_history`` the current destination is overwritten
        instead of being pushed onto the back-stack.
        """
        if not replace_history and self._current:
            self._history.append(self._current)
        previous, self._current = self._current, destination
        logger.debug("Navigated %s -> %s (replace=%s)", previous, destination, replace_history)
        if destination != previous:
            self._notify()

    def back(self) -> str:
        """Return to the previous destination, if any."""
        if self._history:
            self._current = self._history.pop()
            self._notify()
        return self._current

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._current)
