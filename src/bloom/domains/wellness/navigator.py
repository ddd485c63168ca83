"""Gesture navigator — swipeable, paginated tracker strip.

Translates continuous pointer input into discrete page transitions. Offsets
are in percent of one page width: page ``i`` at rest sits at ``-(i * 100)``
and the strip can never be dragged past ``[-(page_count - 1) * 100, 0]``.

The navigator never decides which page is active. A committed gesture asks
the external navigation capability to move, and the index is adopted only
when that capability reports the new page id back through :meth:`sync`.

Usage::

    router = Router("mood-tracker")
    nav = GestureNavigator(pages, router.navigate_to, router.current)
    router.subscribe(nav.sync)

    nav.pointer_down(x=600, viewport_width=1000)
    nav.pointer_move(x=250, viewport_width=1000)   # offset -35
    nav.pointer_up()                                # commits to index 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any

from bloom.domains.wellness.pages.catalog import Page

logger = logging.getLogger(__name__)

PAGE_WIDTH = 100.0
DEFAULT_COMMIT_THRESHOLD = 25.0

# Called as navigate(page_id, replace_history=...) by the navigator.
NavigateFn = Callable[..., None]


class NavigatorDesyncError(LookupError):
    """The externally supplied page id is not among the visible pages."""


class GestureOutcome(str, Enum):
    COMMITTED = "committed"
    SNAPPED_BACK = "snapped_back"
    IGNORED = "ignored"


@dataclass
class NavigatorState:
    current_index: int = 0
    drag_offset: float = 0.0
    is_dragging: bool = False
    pointer_origin: float = 0.0  # percent of viewport width
    committed_offset: float = 0.0  # offset at drag start


class GestureNavigator:
    """Drag/pointer state machine over an ordered list of pages."""

    def __init__(
        self,
        pages: Sequence[Page],
        navigate: NavigateFn,
        current_page_id: str,
        *,
        threshold: float = DEFAULT_COMMIT_THRESHOLD,
    ) -> None:
        if not pages:
            raise ValueError("GestureNavigator needs at least one page")
        if threshold < 0:
            raise ValueError("threshold must not be negative")
        self._pages: list[Page] = list(pages)
        self._navigate = navigate
        self._threshold = threshold
        self._state = NavigatorState()
        self._external_id = current_page_id
        self._pending_id: str | None = None
        self.sync(current_page_id)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigatorState:
        return replace(self._state)

    @property
    def pages(self) -> list[Page]:
        return list(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def current_page(self) -> Page:
        return self._pages[self._state.current_index]

    @property
    def offset(self) -> float:
        return self._state.drag_offset

    @property
    def is_dragging(self) -> bool:
        return self._state.is_dragging

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def pending_page_id(self) -> str | None:
        """Page requested by a committed gesture and not yet reported back."""
        return self._pending_id

    @property
    def min_offset(self) -> float:
        return -(self.page_count - 1) * PAGE_WIDTH

    @property
    def can_go_back(self) -> bool:
        return self._state.current_index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._state.current_index < self.page_count - 1

    @property
    def position_label(self) -> str:
        return f"{self._state.current_index + 1} of {self.page_count}"

    def to_dict(self) -> dict[str, Any]:
        return {
            **asdict(self._state),
            "page_id": self.current_page.id,
            "page_title": self.current_page.title,
            "page_ids": [page.id for page in self._pages],
            "position": self.position_label,
            "can_go_back": self.can_go_back,
            "can_go_forward": self.can_go_forward,
        }

    # ------------------------------------------------------------------
    # External truth
    # ------------------------------------------------------------------

    def sync(self, page_id: str) -> None:
        """Mirror the externally owned current page id.

        Cancels any drag in progress and snaps the strip to the page. An id
        that is not visible falls back to the first page, and navigation to
        that page is requested so the outside world follows.
        """
        self._external_id = page_id
        self._pending_id = None
        try:
            index = self._index_of(page_id)
        except NavigatorDesyncError as exc:
            fallback = self._pages[0].id
            logger.warning("%s; falling back to %s", exc, fallback)
            self._settle(0)
            self._request(fallback)
            return
        self._settle(index)

    def set_pages(self, pages: Sequence[Page]) -> None:
        """Replace the visible pages (after a stage change) and re-clamp."""
        if not pages:
            raise ValueError("GestureNavigator needs at least one page")
        self._pages = list(pages)
        logger.info("Navigator pages updated: %s", [p.id for p in self._pages])
        self.sync(self._external_id)

    def _index_of(self, page_id: str) -> int:
        for index, page in enumerate(self._pages):
            if page.id == page_id:
                return index
        raise NavigatorDesyncError(f"Page {page_id!r} is not visible")

    def _settle(self, index: int) -> None:
        rest = -(index * PAGE_WIDTH)
        self._state = NavigatorState(
            current_index=index,
            drag_offset=rest,
            is_dragging=False,
            pointer_origin=0.0,
            committed_offset=rest,
        )

    # ------------------------------------------------------------------
    # Pointer gestures
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, viewport_width: float) -> None:
        """Start a drag at horizontal pointer position ``x`` (pixels)."""
        st = self._state
        st.is_dragging = True
        st.pointer_origin = _to_percent(x, viewport_width)
        st.committed_offset = -(st.current_index * PAGE_WIDTH)
        st.drag_offset = st.committed_offset
        logger.debug("Drag started at %.1f%% on page %d", st.pointer_origin, st.current_index)

    def pointer_move(self, x: float, viewport_width: float) -> float:
        """Follow the pointer. Returns the clamped offset; no page is committed."""
        st = self._state
        if not st.is_dragging:
            return st.drag_offset
        delta = _to_percent(x, viewport_width) - st.pointer_origin
        st.drag_offset = max(self.min_offset, min(0.0, st.committed_offset + delta))
        return st.drag_offset

    def pointer_up(self) -> GestureOutcome:
        """End the drag; commit a page change or snap back."""
        st = self._state
        if not st.is_dragging:
            return GestureOutcome.IGNORED
        st.is_dragging = False

        diff = st.drag_offset - st.committed_offset
        target = self._target_index(diff)
        if target == st.current_index:
            st.drag_offset = st.committed_offset
            logger.debug("Drag of %.1f%% snapped back to page %d", diff, target)
            return GestureOutcome.SNAPPED_BACK

        logger.info("Swipe committed: page %d -> %d", st.current_index, target)
        self._request(self._pages[target].id)
        return GestureOutcome.COMMITTED

    # Leaving the surface resolves the drag exactly like lifting the pointer.
    pointer_leave = pointer_up

    def _target_index(self, diff: float) -> int:
        index = self._state.current_index
        if abs(diff) <= self._threshold:
            return index
        if diff < 0 and index < self.page_count - 1:
            return index + 1
        if diff > 0 and index > 0:
            return index - 1
        return index

    # ------------------------------------------------------------------
    # Discrete controls
    # ------------------------------------------------------------------

    def step(self, direction: int) -> bool:
        """Request the neighbouring page (-1 back, +1 forward).

        Returns False, without requesting anything, at an edge.
        """
        if direction not in (-1, 1):
            raise ValueError("direction must be -1 or 1")
        target = self._state.current_index + direction
        if not 0 <= target < self.page_count:
            return False
        self._request(self._pages[target].id)
        return True

    def go_next(self) -> bool:
        return self.step(1)

    def go_previous(self) -> bool:
        return self.step(-1)

    def _request(self, page_id: str) -> None:
        self._pending_id = page_id
        try:
            self._navigate(page_id, replace_history=True)
        except Exception:
            self._pending_id = None
            self._settle(self._state.current_index)
            raise


def _to_percent(x: float, viewport_width: float) -> float:
    if viewport_width <= 0:
        raise ValueError("viewport_width must be positive")
    return x / viewport_width * PAGE_WIDTH
