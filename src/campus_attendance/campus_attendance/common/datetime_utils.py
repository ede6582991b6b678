from __future__ import annotations

from datetime import date, datetime, time
from typing import Tuple


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Offsets (``Z`` or ``+07:00``) are converted to local time so that the rest of
    the system can compare against ``now_local()``.
    """

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    parsed = datetime.fromisoformat(v)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)


def day_window(start: date, end: date) -> Tuple[datetime, datetime]:
    """Expand a date range into [start 00:00:00, end 23:59:59]."""
    return datetime.combine(start, time(0, 0, 0)), datetime.combine(end, time(23, 59, 59))


def format_local(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def to_iso(value):
    if value is None:
        return None
    return value.isoformat()
