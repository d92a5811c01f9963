from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


class Clock(Protocol):
    """Supplies "now". Injected everywhere so tests can pin time."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def format_iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Return the zone for ``name``; blank or unknown names give None."""
    if not name or not name.strip():
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return None


def local_date(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of ``moment`` in ``tz`` (process local zone when None)."""
    return moment.astimezone(tz).date()


def local_day_bounds(day: date, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """[start, end) of a local calendar day as aware datetimes.

    The boundary is local midnight, not UTC midnight.
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    if tz is None:
        start, end = start.astimezone(), end.astimezone()
    return start, end


def next_local_midnight(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    _, end = local_day_bounds(local_date(moment, tz), tz)
    return end


def seconds_until(target: datetime, now: datetime) -> int:
    """Whole seconds from ``now`` to ``target``, rounded up, never below 1."""
    remaining = (target - now).total_seconds()
    whole = int(remaining)
    if remaining > whole:
        whole += 1
    return max(1, whole)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
