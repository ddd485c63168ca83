"""Tracker page catalog — immutable page configuration loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# The closed set of page ids shared by the visibility table, the navigator
# and the router, in swipe order.
MOOD_TRACKER = "mood-tracker"
SLEEP_TRACKER = "sleep-tracker"
SYMPTOMS_TRACKER = "symptoms-tracker"
DOCTOR_APPOINTMENT = "doctor-appointment"
MEDICINE_TRACKER = "medicine-tracker"
MEDICAL_TEST = "medical-test"
PERSONAL_REMINDER = "personal-reminder"

PAGE_IDS: tuple[str, ...] = (
    MOOD_TRACKER,
    SLEEP_TRACKER,
    SYMPTOMS_TRACKER,
    DOCTOR_APPOINTMENT,
    MEDICINE_TRACKER,
    MEDICAL_TEST,
    PERSONAL_REMINDER,
)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "pages.yaml"


class CatalogError(Exception):
    """Raised when the page catalog file is invalid."""


@dataclass(frozen=True)
class Page:
    """One screen in the swipeable tracker strip.

    ``data_collecting`` pages must hand a validated payload to the completion
    action; simple pages complete with a plain acknowledgment.
    """

    id: str
    title: str
    subtitle: str = ""
    renderer: str = ""
    data_collecting: bool = False
    completion_message: str = ""
    completion_description: str = ""

    @property
    def is_simple(self) -> bool:
        return not self.data_collecting


class PageCatalog:
    """Ordered, read-only index of all tracker pages."""

    def __init__(self, pages: list[Page]) -> None:
        self._pages = {page.id: page for page in pages}
        if len(self._pages) != len(pages):
            raise CatalogError("Duplicate page id in catalog")

    def get(self, page_id: str) -> Page | None:
        return self._pages.get(page_id)

    def select(self, page_ids: tuple[str, ...] | list[str]) -> list[Page]:
        """Pages for ``page_ids``, in the given order; unknown ids are skipped."""
        return [self._pages[pid] for pid in page_ids if pid in self._pages]

    def all(self) -> list[Page]:
        return list(self._pages.values())

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._pages

    def __len__(self) -> int:
        return len(self._pages)


def load_page_catalog(path: str | Path = DEFAULT_CATALOG_PATH) -> PageCatalog:
    """Parse the YAML catalog file.

    The file must describe exactly the pages in PAGE_IDS; pages are returned
    in PAGE_IDS order regardless of file order.

    Raises:
        CatalogError: If the file is missing fields or names unknown pages.
    """
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    pages: dict[str, Page] = {}
    for item in data.get("pages", []):
        try:
            page = Page(
                id=item["id"],
                title=item["title"],
                subtitle=item.get("subtitle", ""),
                renderer=item.get("renderer", ""),
                data_collecting=bool(item.get("data_collecting", False)),
                completion_message=item.get("completion_message", ""),
                completion_description=item.get("completion_description", "").strip(),
            )
        except (KeyError, TypeError) as exc:
            raise CatalogError(f"Invalid page definition in {path}: {exc}") from exc
        if page.id not in PAGE_IDS:
            raise CatalogError(f"Unknown page id {page.id!r} in {path}")
        pages[page.id] = page

    missing = [pid for pid in PAGE_IDS if pid not in pages]
    if missing:
        raise CatalogError(f"Page catalog {path} is missing: {', '.join(missing)}")

    logger.info("Loaded %d tracker pages from %s", len(pages), path)
    return PageCatalog([pages[pid] for pid in PAGE_IDS])
