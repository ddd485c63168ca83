"""Mood page — log how the user feels, with a short supportive note."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from bloom.core.storage.entry_log import EntryLog
from bloom.core.storage.models import Entry
from bloom.domains.wellness.completion import ValidationError
from bloom.domains.wellness.pages.catalog import MOOD_TRACKER

logger = logging.getLogger(__name__)

MOODS: dict[str, str] = {
    "happy": "Happy",
    "content": "Content",
    "neutral": "Neutral",
    "sad": "Sad",
    "angry": "Angry",
}

REASON_TAGS: tuple[str, ...] = ("Partner", "Body Changes", "Hormonal", "Sleep")

_ADVICE = {
    "happy": "Great! Positive emotions support oxytocin and lower cortisol. "
    "Keep it up with light movement.",
    "content": "Wonderful! This balanced mood supports both your well-being "
    "and baby's development.",
    "neutral": "Flat mood could indicate overwhelm. Want a resource on prenatal anxiety?",
    "sad": "Persistent sadness could be hormonal or emotional. "
    "Consider 5-7 minutes of mindful breathing.",
}
_DEFAULT_ADVICE = (
    "Thank you for tracking your mood. This helps you stay aware of your emotional patterns."
)


def mood_advice(mood: str, reason: str | None = None) -> str:
    if mood == "angry":
        if reason == "Partner":
            return (
                "Relationship strain is common. Try gratitude journaling "
                "or a 1-on-1 with your partner."
            )
        return (
            "It's normal to feel frustrated. Take deep breaths and consider "
            "gentle movement to release tension."
        )
    return _ADVICE.get(mood, _DEFAULT_ADVICE)


class MoodLog:
    """Mood entries over the ``moodHistory`` log."""

    def __init__(self, log: EntryLog) -> None:
        self._log = log

    def log(
        self, mood: str, reasons: Sequence[str] = (), notes: str = ""
    ) -> tuple[Entry, str]:
        """Record a mood. Returns the entry and advice for the user.

        Raises:
            ValidationError: No known mood was selected.
        """
        if mood not in MOODS:
            raise ValidationError(MOOD_TRACKER, ["mood"], "Please select a mood")
        entry = self._log.append(
            {"mood": mood, "reasons": list(reasons), "notes": notes.strip()}
        )
        return entry, mood_advice(mood, reasons[0] if reasons else None)

    def weekly(self, week_offset: int = 0, *, today: date | None = None) -> list[Entry]:
        return self._log.query_by_week(week_offset, today=today)

    def history(self) -> list[Entry]:
        return self._log.entries()
