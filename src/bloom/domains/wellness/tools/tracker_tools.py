"""MCP tools for the swipeable tracker strip.

A client drives the navigator the way a touch surface would: pointer
down/move/up in pixels against a viewport width, or the discrete
forward/back controls. Every tool returns the navigator state as JSON.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastmcp import Context, FastMCP

from bloom.core.storage import PersistenceWriteError
from bloom.domains.wellness.completion import CompletionInProgressError, ValidationError
from bloom.domains.wellness.session import NoTrackerOpenError, TrackerSession
from bloom.domains.wellness.visibility import Stage, UnknownStageError, has_journey_panel

logger = logging.getLogger(__name__)


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"status": "error", "message": message, **extra})


def register_tracker_tools(mcp: FastMCP, session: TrackerSession) -> None:
    """Register navigator, stage and completion tools on the MCP server."""

    def _state(status: str = "ok", **extra: Any) -> str:
        nav = session.navigator
        return json.dumps({
            "status": status,
            "route": session.router.current,
            "navigator": nav.to_dict() if nav is not None else None,
            **extra,
        })

    @mcp.tool
    async def tracker_state(ctx: Context) -> str:
        """Show the current route and, when a tracker is open, the navigator state."""
        return _state()

    @mcp.tool
    async def open_tracker(ctx: Context, page_id: str) -> str:
        """Open the tracker strip at a page (e.g. 'mood-tracker', 'doctor-appointment').

        Args:
            page_id: Tracker page id. Pages not enabled for the current stage
                open the first enabled page instead.
        """
        try:
            session.open(page_id)
        except ValueError as exc:
            return _error(str(exc))
        return _state()

    @mcp.tool
    async def close_tracker(ctx: Context) -> str:
        """Leave the tracker strip and return to the task list."""
        session.close()
        return _state()

    @mcp.tool
    async def pointer_down(ctx: Context, x: float, viewport_width: float) -> str:
        """Start a drag at horizontal position x (pixels) on a viewport of the given width."""
        try:
            session.require_navigator().pointer_down(x, viewport_width)
        except (NoTrackerOpenError, ValueError) as exc:
            return _error(str(exc))
        return _state()

    @mcp.tool
    async def pointer_move(ctx: Context, x: float, viewport_width: float) -> str:
        """Move the pointer during a drag; updates the strip offset only."""
        try:
            session.require_navigator().pointer_move(x, viewport_width)
        except (NoTrackerOpenError, ValueError) as exc:
            return _error(str(exc))
        return _state()

    @mcp.tool
    async def pointer_up(ctx: Context) -> str:
        """Release the pointer: commit to the neighbouring page or snap back."""
        try:
            outcome = session.require_navigator().pointer_up()
        except NoTrackerOpenError as exc:
            return _error(str(exc))
        return _state(outcome=outcome.value)

    @mcp.tool
    async def swipe(ctx: Context, distance: float, viewport_width: float = 400.0) -> str:
        """Perform a whole drag gesture.

        Args:
            distance: Horizontal pointer travel in pixels; negative swipes left
                (next page), positive swipes right (previous page).
            viewport_width: Width of the swipe surface in pixels.
        """
        try:
            nav = session.require_navigator()
            start = viewport_width / 2
            nav.pointer_down(start, viewport_width)
            nav.pointer_move(start + distance, viewport_width)
            outcome = nav.pointer_up()
        except (NoTrackerOpenError, ValueError) as exc:
            return _error(str(exc))
        return _state(outcome=outcome.value)

    @mcp.tool
    async def step_tracker(ctx: Context, direction: str) -> str:
        """Use the header arrows.

        Args:
            direction: 'next' or 'prev'.
        """
        if direction not in ("next", "prev"):
            return _error("direction must be 'next' or 'prev'")
        try:
            moved = session.require_navigator().step(1 if direction == "next" else -1)
        except NoTrackerOpenError as exc:
            return _error(str(exc))
        return _state(moved=moved)

    @mcp.tool
    async def complete_tracker(ctx: Context, payload: dict[str, Any] | None = None) -> str:
        """Complete the open tracker page.

        Args:
            payload: Form fields for data-collecting pages, e.g. for
                'doctor-appointment': doctor_name, specialty, date (ISO 8601), time.
        """
        try:
            result = await session.complete(payload)
        except ValidationError as exc:
            return _error(str(exc), missing_fields=exc.missing_fields)
        except (NoTrackerOpenError, CompletionInProgressError) as exc:
            return _error(str(exc))

        return json.dumps({
            "status": "saved" if result.persisted else "saved_in_memory",
            "page_id": result.page_id,
            "message": result.message,
            "description": result.description,
            "task": result.entry.to_dict() if result.entry else None,
            "route": session.router.current,
        })

    @mcp.tool
    async def get_stage(ctx: Context) -> str:
        """Show the current stage and what it enables."""
        stage = session.stage.current
        return json.dumps({
            "status": "ok",
            "stage": stage.value,
            "stages": [s.value for s in Stage],
            "visible_pages": list(session.stage.visible_pages()),
            "journey_panel": has_journey_panel(stage),
        })

    @mcp.tool
    async def set_stage(ctx: Context, stage: str) -> str:
        """Change the stage ('Trying to Conceive', 'Incubator Stage', 'Veteran Stage')."""
        try:
            new_stage = Stage.parse(stage)
        except UnknownStageError as exc:
            return _error(str(exc))
        try:
            session.set_stage(new_stage)
        except PersistenceWriteError as exc:
            logger.warning("Stage change not persisted: %s", exc)
            return _state(status="saved_in_memory", stage=new_stage.value)
        return _state(stage=new_stage.value)
