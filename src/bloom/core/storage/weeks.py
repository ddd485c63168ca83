"""Calendar-week windowing helpers.

Weeks run Sunday through Saturday in local time. A week offset of 0 is the
week containing today, -1 the week before, and so on. Membership is decided
on calendar dates, never on the distance from "now", so an entry logged at
any time of day lands in exactly one week.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import TypeVar

T = TypeVar("T")


def date_key_for(epoch_millis: int) -> str:
    """Local calendar day ('YYYY-MM-DD') of an epoch-milliseconds timestamp."""
    return datetime.fromtimestamp(epoch_millis / 1000).date().isoformat()


def to_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or ISO 8601 string to a local calendar date.

    Timezone-aware datetimes are converted to local time first.

    Raises:
        ValueError: If a string is not ISO 8601.
        TypeError: For any other type.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Cannot interpret {type(value).__name__} as a date")

    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.date()


def week_start(today: date) -> date:
    """Sunday on or before ``today``."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def week_range(week_offset: int, today: date | None = None) -> tuple[date, date]:
    """First and last calendar day (inclusive) of the week at ``week_offset``."""
    today = today or date.today()
    start = week_start(today) + timedelta(days=7 * week_offset)
    return start, start + timedelta(days=6)


def date_in_week(date_key: str, week_offset: int, today: date | None = None) -> bool:
    start, end = week_range(week_offset, today)
    return start <= date.fromisoformat(date_key) <= end


def filter_by_week(
    records: Iterable[T],
    week_offset: int,
    *,
    today: date | None = None,
    key: Callable[[T], str],
) -> list[T]:
    """Keep the records whose date key falls in the week at ``week_offset``.

    Input order is preserved.
    """
    start, end = week_range(week_offset, today)
    selected = []
    for record in records:
        day = date.fromisoformat(key(record))
        if start <= day <= end:
            selected.append(record)
    return selected


def week_label(week_offset: int) -> str:
    if week_offset == 0:
        return "This Week"
    if week_offset == -1:
        return "Last Week"
    return f"{abs(week_offset)} weeks ago"


def format_week_range(week_offset: int, today: date | None = None) -> str:
    """Short human range, e.g. 'Oct 18 - Oct 24'."""
    start, end = week_range(week_offset, today)
    return f"{start:%b} {start.day} - {end:%b} {end.day}"


def can_advance(week_offset: int) -> bool:
    """Browsing forward stops at the current week."""
    return week_offset < 0
