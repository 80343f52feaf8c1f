"""Calendar arithmetic over ISO date keys — pure business logic.

Every date is a local calendar date rendered as YYYY-MM-DD; there is no
timezone conversion anywhere. Unparseable input yields None (the "invalid"
sentinel) and range checks treat it as non-matching.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

EPOCH_ISO = "1970-01-01"

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_US_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

TIMEFRAMES = ("today", "week", "month", "total")


def to_iso(d: date | datetime) -> str:
    """Render a date using its local calendar fields."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_iso(value: object) -> date | None:
    """Parse YYYY-MM-DD (or legacy MM/DD/YYYY) into a date, None if invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    m = _ISO_RE.match(text)
    if m:
        y, mo, d = (int(p) for p in m.groups())
    else:
        m = _US_RE.match(text)
        if not m:
            return None
        mo, d, y = (int(p) for p in m.groups())

    try:
        return date(y, mo, d)
    except ValueError:
        return None


def is_iso(value: object) -> bool:
    """True only for a strict, real YYYY-MM-DD string."""
    return isinstance(value, str) and bool(_ISO_RE.match(value)) and parse_iso(value) is not None


def today_iso(today: date | None = None) -> str:
    return to_iso(today or date.today())


def add_days(iso: str, days: int) -> str | None:
    d = parse_iso(iso)
    if d is None:
        return None
    return to_iso(d + timedelta(days=days))


def start_of_week(d: date, week_start: int = 0) -> str:
    """First day of d's week; week_start follows date.weekday() (0 = Monday)."""
    offset = (d.weekday() - week_start) % 7
    return to_iso(d - timedelta(days=offset))


def start_of_month(d: date) -> str:
    return to_iso(d.replace(day=1))


def in_range(iso: object, start_iso: object, end_iso: object) -> bool:
    """Inclusive range membership. Any invalid argument → False."""
    d = parse_iso(iso)
    s = parse_iso(start_iso)
    e = parse_iso(end_iso)
    if d is None or s is None or e is None:
        return False
    return s <= d <= e


def timeframe_range(
    timeframe: str, today: date, week_start: int = 0,
) -> tuple[str, str]:
    """Resolve a timeframe into an inclusive (start, end) ISO window ending today."""
    end = to_iso(today)
    if timeframe == "today":
        return end, end
    if timeframe == "week":
        return start_of_week(today, week_start), end
    if timeframe == "month":
        return start_of_month(today), end
    return EPOCH_ISO, end


def trailing_days(today: date, days: int) -> list[str]:
    """The last `days` ISO dates ending today, oldest first."""
    return [to_iso(today - timedelta(days=i)) for i in range(days - 1, -1, -1)]


def _hhmm_to_minutes(raw: str) -> int | None:
    m = _HHMM_RE.match(str(raw or "").strip())
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour * 60 + minute


def diff_hours(start_time: str, end_time: str) -> float:
    """Hours between two HH:MM times; an end before the start wraps past midnight.

    Returns 0.0 when either time is malformed.
    """
    start = _hhmm_to_minutes(start_time)
    end = _hhmm_to_minutes(end_time)
    if start is None or end is None:
        return 0.0
    minutes = end - start if end >= start else end + 24 * 60 - start
    return minutes / 60
