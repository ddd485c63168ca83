"""Stage-based visibility policy.

A closed lookup table from Stage to the pages, overview tabs and extra panels
enabled for that stage. Adding a stage means adding one table row; the
module refuses to import if any stage is left without a rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bloom.domains.wellness.pages.catalog import (
    DOCTOR_APPOINTMENT,
    MEDICAL_TEST,
    MEDICINE_TRACKER,
    MOOD_TRACKER,
    PAGE_IDS,
    PERSONAL_REMINDER,
    SLEEP_TRACKER,
    SYMPTOMS_TRACKER,
)


class UnknownStageError(ValueError):
    """Raised when a string does not name a Stage."""


class Stage(str, Enum):
    """The user's journey phase."""

    TRYING_TO_CONCEIVE = "Trying to Conceive"
    INCUBATOR = "Incubator Stage"
    VETERAN = "Veteran Stage"

    @classmethod
    def parse(cls, value: str) -> Stage:
        try:
            return cls(value)
        except ValueError:
            raise UnknownStageError(f"Unknown stage: {value!r}") from None


OVERVIEW_TABS: tuple[str, ...] = ("overview", "mood", "sleep", "tasks")


@dataclass(frozen=True)
class VisibilityRule:
    """What a stage enables. ``journey_panel`` is the pregnancy-journey panel."""

    pages: tuple[str, ...]
    tabs: tuple[str, ...] = OVERVIEW_TABS
    journey_panel: bool = False


VISIBILITY: dict[Stage, VisibilityRule] = {
    Stage.TRYING_TO_CONCEIVE: VisibilityRule(
        pages=(MOOD_TRACKER, SLEEP_TRACKER, MEDICINE_TRACKER),
    ),
    Stage.INCUBATOR: VisibilityRule(
        pages=PAGE_IDS,
        journey_panel=True,
    ),
    Stage.VETERAN: VisibilityRule(
        pages=(
            MOOD_TRACKER,
            SLEEP_TRACKER,
            DOCTOR_APPOINTMENT,
            MEDICINE_TRACKER,
            PERSONAL_REMINDER,
        ),
    ),
}


def _check_table() -> None:
    missing = [stage.value for stage in Stage if stage not in VISIBILITY]
    if missing:
        raise RuntimeError(f"No visibility rule for stage(s): {', '.join(missing)}")
    for stage, rule in VISIBILITY.items():
        if not rule.pages:
            raise RuntimeError(f"Stage {stage.value!r} enables no pages")
        unknown = set(rule.pages) - set(PAGE_IDS)
        if unknown:
            raise RuntimeError(f"Stage {stage.value!r} names unknown pages: {sorted(unknown)}")


_check_table()

# Catalog order, so every stage swipes through pages in the same sequence.
_ORDER = {page_id: index for index, page_id in enumerate(PAGE_IDS)}


def visible_pages(stage: Stage) -> tuple[str, ...]:
    """Ordered ids of the pages enabled for ``stage``."""
    return tuple(sorted(VISIBILITY[stage].pages, key=_ORDER.__getitem__))


def is_page_visible(stage: Stage, page_id: str) -> bool:
    return page_id in VISIBILITY[stage].pages


def is_tab_visible(stage: Stage, tab: str) -> bool:
    return tab in VISIBILITY[stage].tabs


def has_journey_panel(stage: Stage) -> bool:
    return VISIBILITY[stage].journey_panel
