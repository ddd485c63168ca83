"""Trailing-edge debounce on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Runs ``callback`` once, ``delay`` seconds after the last ``trigger()``.

    Each trigger cancels the pending timer, so only the final state within a
    burst of mutations is written (last write wins). ``flush()`` runs a
    pending callback immediately; call it on teardown so a write scheduled
    inside the delay window is not lost.

    ``trigger()`` must be called from a running event loop.
    """

    def __init__(self, callback: Callable[[], None], delay: float = 0.5) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> bool:
        """Run the pending callback now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        self._callback()
