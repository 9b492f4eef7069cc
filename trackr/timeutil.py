# trackr/timeutil.py
"""ISO-8601 helpers shared by the lifecycle engine, sanitizer and analytics."""

import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def now_iso(now: Optional[datetime] = None) -> str:
    return to_iso(now or utcnow())


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (date-only or date-time), ``datetime`` and
    ``date`` objects, and ``{"seconds": ...}`` epoch mappings. Naive values
    are read as UTC. Returns None for anything empty or unparsable.
    """
    if not value:
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            parsed = datetime.fromisoformat(value.strip())
        elif isinstance(value, dict) and value.get("seconds"):
            return datetime.fromtimestamp(float(value["seconds"]), tz=timezone.utc)
        else:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # Offsets can push year 1 or year 9999 values out of range.
        return parsed.astimezone(timezone.utc)
    except (ValueError, TypeError, OverflowError, OSError):
        return None


def normalize_timestamp(value: Any) -> Optional[str]:
    """Re-emit *value* as a canonical ISO string, or None if unusable."""
    parsed = parse_timestamp(value)
    return to_iso(parsed) if parsed is not None else None


def normalize_due(value: Any) -> Optional[str]:
    """Coerce a due-date edit; unparsable input becomes None instead of an error."""
    normalized = normalize_timestamp(value)
    if value and normalized is None:
        logger.debug("Discarding unparsable due date %r", value)
    return normalized


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Return the zone used for calendar-day bucketing.

    An empty name returns None, meaning the server's local zone with its
    daylight-saving rules applied per instant. Unknown names fall back to
    UTC with a warning.
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r, falling back to UTC", name)
        return timezone.utc


def local_day(value: datetime, tz: Optional[tzinfo]) -> Optional[date]:
    """Calendar date of *value* as seen in *tz* (None: server local time).

    Returns None when the conversion falls outside the representable range.
    """
    try:
        return value.astimezone(tz).date()
    except (OverflowError, OSError, ValueError):
        return None


def at_local(day: date, clock: time, tz: Optional[tzinfo]) -> Optional[datetime]:
    """Aware datetime for *clock* on *day* in *tz* (None: server local time)."""
    try:
        if tz is None:
            return datetime.combine(day, clock).astimezone()
        return datetime.combine(day, clock, tzinfo=tz)
    except (OverflowError, OSError, ValueError):
        return None
