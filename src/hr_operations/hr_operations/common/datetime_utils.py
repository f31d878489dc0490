from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.constants import HOURS_PRECISION, WORKING_WEEKDAYS
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local time.

    A trailing 'Z' means UTC. Timestamps with an offset are converted to local time first.
    """
    try:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid timestamp (ISO-8601): {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_time_of_day(value: str) -> time:
    """Accept 'HH:MM', 'HH:MM:SS' or a full ISO timestamp (only the time part is kept)."""
    text = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return parse_iso_datetime(text).time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def sunday_based_weekday(day: date) -> int:
    """Week day number with 0=Sunday .. 6=Saturday, as stored on CompanyOff."""
    return (day.weekday() + 1) % 7


def working_days_between(start: date, end: date) -> int:
    """Count Monday..Friday days in [start, end] inclusive."""
    if end < start:
        return 0
    count = 0
    current = start
    while current <= end:
        if current.weekday() in WORKING_WEEKDAYS:
            count += 1
        current += timedelta(days=1)
    return count


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours as a float, never negative."""
    seconds = (end - start).total_seconds()
    return seconds / 3600 if seconds > 0 else 0.0


def round_hours(value: Optional[float]) -> float:
    return round(float(value or 0), HOURS_PRECISION)


def month_bounds(month: Optional[str], *, today: Optional[date] = None) -> tuple[date, date]:
    """Return first and last day of 'YYYY-MM' (or of the current month)."""
    if month:
        try:
            first = datetime.strptime(month, "%Y-%m").date()
        except ValueError:
            raise ValidationError(f"Invalid month (YYYY-MM): {month!r}")
    else:
        ref = today or now_local().date()
        first = ref.replace(day=1)

    next_month = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first, next_month - timedelta(days=1)
