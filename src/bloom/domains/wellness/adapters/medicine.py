"""Medicine page — daily checklist with debounced auto-save.

Checking a medicine off updates today's DailyAggregate in ``medicineHistory``
after ``autosave_delay`` seconds of quiet. ``close()`` writes any pending
change immediately, so leaving the page inside the delay window loses nothing.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Any

from bloom.core.scheduling.debounce import Debouncer
from bloom.core.storage import KeyValueStore, PersistenceReadError, PersistenceWriteError
from bloom.core.storage.entry_log import DailyAggregateLog
from bloom.core.storage.kv import SELECTED_MEDICINES_KEY, USER_MEDICINES_KEY
from bloom.core.storage.models import DailyAggregate
from bloom.domains.wellness.completion import ValidationError
from bloom.domains.wellness.pages.catalog import MEDICINE_TRACKER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Medicine:
    name: str
    default_dosage: str = ""
    unit: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Medicine:
        return cls(
            name=str(data["name"]),
            default_dosage=str(data.get("default_dosage", "")),
            unit=str(data.get("unit", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


PREDEFINED_MEDICINES: tuple[Medicine, ...] = (
    Medicine("Folic Acid", "400", "mcg"),
    Medicine("Prenatal Multivitamin", "1", "capsule"),
    Medicine("Iron Supplement", "27", "mg"),
    Medicine("Calcium", "1000", "mg"),
    Medicine("Vitamin D", "1000", "IU"),
    Medicine("DHA / Omega-3", "200", "mg"),
    Medicine("Magnesium", "350", "mg"),
    Medicine("Probiotic", "1", "capsule"),
    Medicine("Vitamin B12", "2.6", "mcg"),
    Medicine("Zinc", "11", "mg"),
    Medicine("Vitamin C", "85", "mg"),
    Medicine("Biotin", "30", "mcg"),
    Medicine("Choline", "450", "mg"),
)


class MedicineChecklist:
    """Today's medicine checklist over a DailyAggregateLog.

    The user picks medicines from the predefined list or adds their own; custom
    medicines are kept under ``userMedicines`` and shadow a predefined medicine
    of the same name. ``toggle`` and ``deselect`` schedule the auto-save on the
    running event loop, so they must be called from async code.

    Selection changes are written immediately and raise PersistenceWriteError
    when the write fails; the change is kept for the session either way.
    """

    def __init__(
        self,
        history: DailyAggregateLog,
        store: KeyValueStore,
        *,
        autosave_delay: float = 0.5,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._history = history
        self._store = store
        self._clock = clock
        self._debouncer = Debouncer(self._save_today, autosave_delay)
        self._selected: list[Medicine] = []
        self._user: list[Medicine] = []
        self._checked: list[str] = []

    @property
    def selected(self) -> list[Medicine]:
        return list(self._selected)

    @property
    def custom(self) -> list[Medicine]:
        return list(self._user)

    @property
    def checked(self) -> list[str]:
        return list(self._checked)

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def progress(self) -> tuple[int, int]:
        """(checked count, selected count)."""
        return len(self._checked), len(self._selected)

    def _today_key(self) -> str:
        return self._clock().date().isoformat()

    def available(self) -> list[Medicine]:
        """Custom medicines first, then the predefined ones they don't replace."""
        custom_names = {m.name for m in self._user}
        return self._user + [m for m in PREDEFINED_MEDICINES if m.name not in custom_names]

    def find(self, name: str) -> Medicine | None:
        for medicine in self._selected + self.available():
            if medicine.name == name:
                return medicine
        return None

    def open(self) -> None:
        """Restore the medicine lists and today's checked items."""
        self._selected = self._load_list(SELECTED_MEDICINES_KEY)
        self._user = self._load_list(USER_MEDICINES_KEY)
        today = self._history.get(self._today_key())
        self._checked = list(today.items) if today else []

    def _load_list(self, key: str) -> list[Medicine]:
        try:
            raw = self._store.get(key)
            if raw is None:
                return []
            return [Medicine.from_dict(item) for item in json.loads(raw)]
        except (PersistenceReadError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable medicine list %s: %s", key, exc)
            return []

    def _persist_list(self, key: str, medicines: list[Medicine]) -> None:
        raw = json.dumps([m.to_dict() for m in medicines], separators=(",", ":"))
        self._store.set(key, raw)

    def select(self, medicine: Medicine) -> bool:
        """Add ``medicine`` to the daily list. Returns False if already there."""
        if any(m.name == medicine.name for m in self._selected):
            return False
        self._selected.append(medicine)
        self._persist_list(SELECTED_MEDICINES_KEY, self._selected)
        return True

    def deselect(self, name: str) -> bool:
        """Drop a medicine from the list; it is unchecked for today as well.

        Returns:
            True if the medicine was on the list.
        """
        remaining = [m for m in self._selected if m.name != name]
        if len(remaining) == len(self._selected):
            return False
        self._selected = remaining
        if name in self._checked:
            self._checked.remove(name)
            self._debouncer.trigger()
        self._persist_list(SELECTED_MEDICINES_KEY, self._selected)
        return True

    def add_custom(self, medicine: Medicine) -> Medicine:
        """Save a user-defined medicine and put it on the daily list.

        A custom medicine with the same name is replaced.

        Raises:
            ValidationError: The name is blank.
        """
        name = medicine.name.strip()
        if not name:
            raise ValidationError(MEDICINE_TRACKER, ["name"], "Please enter a medicine name.")
        medicine = replace(medicine, name=name)
        self._user = [m for m in self._user if m.name != name] + [medicine]
        newly_selected = not any(m.name == name for m in self._selected)
        if newly_selected:
            self._selected.append(medicine)
        self._persist_list(USER_MEDICINES_KEY, self._user)
        if newly_selected:
            self._persist_list(SELECTED_MEDICINES_KEY, self._selected)
        logger.info("Custom medicine added (%d custom)", len(self._user))
        return medicine

    def update(self, medicine: Medicine) -> bool:
        """Change the dosage or unit of a selected medicine.

        The custom definition, if there is one, follows. Returns False when
        the medicine is not selected.
        """
        if not any(m.name == medicine.name for m in self._selected):
            return False
        self._selected = [medicine if m.name == medicine.name else m for m in self._selected]
        self._persist_list(SELECTED_MEDICINES_KEY, self._selected)
        if any(m.name == medicine.name for m in self._user):
            self._user = [medicine if m.name == medicine.name else m for m in self._user]
            self._persist_list(USER_MEDICINES_KEY, self._user)
        return True

    def toggle(self, name: str) -> bool:
        """Check or uncheck ``name`` for today. Returns the new checked state."""
        if name in self._checked:
            self._checked.remove(name)
            now_checked = False
        else:
            self._checked.append(name)
            now_checked = True
        self._debouncer.trigger()
        return now_checked

    def history(self) -> list[DailyAggregate]:
        return self._history.aggregates()

    def close(self) -> None:
        """Write a pending auto-save now."""
        self._debouncer.flush()

    def _save_today(self) -> None:
        try:
            self._history.upsert_daily(self._today_key(), self._checked)
        except PersistenceWriteError as exc:
            # Timer callback: nobody to raise to. The aggregate stays in memory.
            logger.warning("Medicine checklist auto-save failed: %s", exc)
