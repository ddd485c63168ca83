"""Symptoms page — severity-rated symptom log browsed by week."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from bloom.core.storage.entry_log import EntryLog
from bloom.core.storage.models import Entry
from bloom.domains.wellness.completion import ValidationError
from bloom.domains.wellness.pages.catalog import SYMPTOMS_TRACKER

logger = logging.getLogger(__name__)

COMMON_SYMPTOMS: tuple[str, ...] = (
    "Morning Sickness",
    "Nausea",
    "Fatigue",
    "Back Pain",
    "Headache",
    "Heartburn",
    "Constipation",
    "Swelling",
    "Leg Cramps",
    "Braxton Hicks",
    "Shortness of Breath",
    "Frequent Urination",
    "Breast Tenderness",
    "Dizziness",
    "Round Ligament Pain",
    "Insomnia",
    "Mood Changes",
    "Food Cravings",
    "Food Aversions",
    "Skin Changes",
)

OTHER = "Other"

SEVERITY_LABELS: dict[int, str] = {
    1: "Mild",
    2: "Moderate",
    3: "Uncomfortable",
    4: "Severe",
}


def severity_label(severity: int) -> str:
    return SEVERITY_LABELS.get(severity, "Unknown")


class SymptomLog:
    """Symptom entries over the ``pregnancy-symptoms`` log."""

    def __init__(self, log: EntryLog, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._log = log
        self._clock = clock

    def add(
        self,
        symptom: str,
        severity: int,
        notes: str = "",
        custom_name: str = "",
    ) -> Entry:
        """Record a symptom. ``symptom == "Other"`` requires ``custom_name``.

        Raises:
            ValidationError: Symptom name or severity missing.
        """
        name = symptom
        if symptom == OTHER:
            name = custom_name.strip()
            if not name:
                raise ValidationError(
                    SYMPTOMS_TRACKER, ["custom_name"], "Please enter a custom symptom name."
                )
        missing = []
        if not name:
            missing.append("symptom")
        if severity not in SEVERITY_LABELS:
            missing.append("severity")
        if missing:
            raise ValidationError(
                SYMPTOMS_TRACKER, missing, "Please select a symptom and severity level."
            )

        now = self._clock()
        payload = {
            "symptom": name,
            "severity": severity,
            "time": now.strftime("%H:%M"),
        }
        if notes.strip():
            payload["notes"] = notes.strip()
        entry = self._log.append(payload, date_key=now.date().isoformat())
        logger.info("Symptom recorded (%s)", severity_label(severity))
        return entry

    def delete(self, entry_id: str) -> bool:
        return self._log.delete_by_id(entry_id)

    def weekly(self, week_offset: int = 0, *, today: date | None = None) -> list[Entry]:
        """Symptoms in the week at ``week_offset``, newest first."""
        entries = self._log.query_by_week(week_offset, today=today)
        return sorted(
            entries,
            key=lambda e: (e.date_key, e.payload.get("time", ""), e.created_at),
            reverse=True,
        )
