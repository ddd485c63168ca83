"""MCP tools for the mood, symptom, medicine and task logs."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from bloom.domains.wellness.session import TrackerSession

from bloom.core.storage import PersistenceWriteError
from bloom.core.storage.weeks import format_week_range, week_label
from bloom.domains.wellness.adapters.medicine import Medicine
from bloom.domains.wellness.adapters.mood import mood_advice
from bloom.domains.wellness.adapters.symptoms import severity_label
from bloom.domains.wellness.completion import ValidationError

logger = logging.getLogger(__name__)


def register_log_tools(mcp: FastMCP, session: TrackerSession) -> None:
    """Register the per-tracker logging tools on the MCP server."""

    @mcp.tool
    async def log_mood(
        ctx: Context,
        mood: str,
        reasons: list[str] | None = None,
        notes: str = "",
    ) -> str:
        """Record today's mood.

        Args:
            mood: One of 'happy', 'content', 'neutral', 'sad', 'angry'.
            reasons: Optional tags such as 'Partner', 'Body Changes', 'Hormonal', 'Sleep'.
            notes: Optional free text.
        """
        try:
            entry, advice = session.mood_log.log(mood, reasons or [], notes)
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        except PersistenceWriteError as exc:
            logger.warning("Mood kept in memory only: %s", exc)
            return json.dumps({
                "status": "saved_in_memory",
                "entry": exc.record.to_dict(),
                "advice": mood_advice(mood, reasons[0] if reasons else None),
            })
        return json.dumps({"status": "saved", "entry": entry.to_dict(), "advice": advice})

    @mcp.tool
    async def log_symptom(
        ctx: Context,
        symptom: str,
        severity: int,
        notes: str = "",
        custom_name: str = "",
    ) -> str:
        """Record a symptom with severity 1 (mild) to 4 (severe).

        Args:
            symptom: A common symptom name, or 'Other' together with custom_name.
            severity: 1 Mild, 2 Moderate, 3 Uncomfortable, 4 Severe.
            notes: Optional notes.
            custom_name: Symptom name when symptom is 'Other'.
        """
        try:
            entry = session.symptom_log.add(symptom, severity, notes, custom_name)
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        except PersistenceWriteError as exc:
            logger.warning("Symptom kept in memory only: %s", exc)
            return json.dumps({"status": "saved_in_memory", "entry": exc.record.to_dict()})
        return json.dumps({
            "status": "saved",
            "entry": entry.to_dict(),
            "severity_label": severity_label(severity),
        })

    @mcp.tool
    async def delete_symptom(ctx: Context, entry_id: str) -> str:
        """Delete a symptom entry. Unknown ids are ignored."""
        try:
            deleted = session.symptom_log.delete(entry_id)
        except PersistenceWriteError as exc:
            logger.warning("Symptom deletion not persisted: %s", exc)
            return json.dumps({"status": "saved_in_memory", "deleted": True})
        return json.dumps({"status": "ok", "deleted": deleted})

    @mcp.tool
    async def weekly_history(ctx: Context, log: str = "symptoms", week_offset: int = 0) -> str:
        """Entries logged during one calendar week (Sunday to Saturday).

        Args:
            log: 'symptoms', 'moods', 'tasks' or 'medicine'.
            week_offset: 0 for this week, -1 for last week, and so on.
        """
        if week_offset > 0:
            return json.dumps({"status": "error", "message": "Future weeks are not available"})
        today = session.today()
        if log == "symptoms":
            found = session.symptom_log.weekly(week_offset, today=today)
        elif log == "moods":
            found = session.mood_log.weekly(week_offset, today=today)
        elif log == "tasks":
            found = session.tasks.query_by_week(week_offset, today=today)
        elif log == "medicine":
            found = session.medicine_history.query_by_week(week_offset, today=today)
        else:
            return json.dumps({"status": "error", "message": f"Unknown log: {log!r}"})
        return json.dumps({
            "status": "ok",
            "week": week_label(week_offset),
            "range": format_week_range(week_offset, today),
            "count": len(found),
            "entries": [r.to_dict() for r in found],
        })

    @mcp.tool
    async def toggle_medicine(ctx: Context, name: str) -> str:
        """Check or uncheck a medicine for today. Saved automatically after a short pause."""
        checked = session.medicine.toggle(name)
        done, total = session.medicine.progress()
        return json.dumps({
            "status": "ok",
            "name": name,
            "checked": checked,
            "checked_today": session.medicine.checked,
            "completed_count": done,
            "total_count": total,
        })

    def _checklist_state() -> dict:
        done, total = session.medicine.progress()
        return {
            "selected": [m.to_dict() for m in session.medicine.selected],
            "checked_today": session.medicine.checked,
            "completed_count": done,
            "total_count": total,
        }

    @mcp.tool
    async def list_medicines(ctx: Context) -> str:
        """Medicines on the daily list and the ones available to add."""
        return json.dumps({
            "status": "ok",
            **_checklist_state(),
            "available": [m.to_dict() for m in session.medicine.available()],
        }, indent=2)

    @mcp.tool
    async def select_medicine(ctx: Context, name: str) -> str:
        """Put a predefined or custom medicine on the daily checklist."""
        medicine = session.medicine.find(name)
        if medicine is None:
            return json.dumps({"status": "error", "message": f"Unknown medicine: {name!r}"})
        try:
            added = session.medicine.select(medicine)
        except PersistenceWriteError as exc:
            logger.warning("Medicine selection kept in memory only: %s", exc)
            return json.dumps({"status": "saved_in_memory", "added": True, **_checklist_state()})
        return json.dumps({"status": "ok", "added": added, **_checklist_state()})

    @mcp.tool
    async def deselect_medicine(ctx: Context, name: str) -> str:
        """Take a medicine off the daily checklist; it is unchecked for today too."""
        try:
            removed = session.medicine.deselect(name)
        except PersistenceWriteError as exc:
            logger.warning("Medicine removal kept in memory only: %s", exc)
            return json.dumps({"status": "saved_in_memory", "removed": True, **_checklist_state()})
        return json.dumps({"status": "ok", "removed": removed, **_checklist_state()})

    @mcp.tool
    async def add_custom_medicine(
        ctx: Context,
        name: str,
        default_dosage: str = "",
        unit: str = "",
    ) -> str:
        """Save a medicine that is not in the predefined list and add it to the checklist.

        Args:
            name: Medicine name. A custom medicine with the same name is replaced.
            default_dosage: Usual dose, e.g. '500'.
            unit: Dose unit, e.g. 'mg'.
        """
        try:
            medicine = session.medicine.add_custom(
                Medicine(name, default_dosage.strip(), unit.strip())
            )
        except ValidationError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        except PersistenceWriteError as exc:
            logger.warning("Custom medicine kept in memory only: %s", exc)
            return json.dumps({"status": "saved_in_memory", **_checklist_state()})
        return json.dumps({"status": "saved", "medicine": medicine.to_dict(), **_checklist_state()})

    @mcp.tool
    async def medicine_history(ctx: Context, limit: int = 7) -> str:
        """Recent medicine history, one record per day, newest first."""
        history = session.medicine.history()[:limit]
        return json.dumps({
            "status": "ok",
            "count": len(history),
            "days": [a.to_dict() for a in history],
        }, indent=2)

    @mcp.tool
    async def list_tasks(ctx: Context, task_type: str = "", view: str = "all") -> str:
        """List tasks created by completed tracker pages.

        Args:
            task_type: Optional page id filter, e.g. 'doctor-appointment'.
            view: 'all', 'upcoming', 'past' or 'recent'.
        """
        board = session.task_board
        type_filter = task_type or None
        views = {
            "all": board.by_type,
            "upcoming": board.upcoming,
            "past": board.past,
            "recent": board.recent,
        }
        if view not in views:
            return json.dumps({"status": "error", "message": f"Unknown view: {view!r}"})
        tasks = views[view](type_filter)
        return json.dumps({
            "status": "ok",
            "count": len(tasks),
            "summary": board.summary(type_filter),
            "tasks": [t.to_dict() for t in tasks],
        }, indent=2)
