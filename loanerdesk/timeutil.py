"""
Timestamp helpers shared by models and services.

All timestamps are stored as naive UTC datetimes so that values read
back from SQLite compare cleanly with freshly generated ones.
"""

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: datetime | None) -> str | None:
    """Serialize a stored UTC datetime as ISO-8601 with a ``Z`` suffix."""
    if value is None:
        return None
    return value.isoformat() + "Z"


def parse_query_datetime(raw: str, end_of_day: bool = False) -> datetime:
    """
    Parse a date or datetime from a query-string parameter.

    Accepts ``YYYY-MM-DD`` or any ISO-8601 datetime (a trailing ``Z`` or
    explicit offset is converted to naive UTC).  When ``end_of_day`` is
    True a date-only value is widened to the last instant of that day so
    that an ``endDate`` filter includes the whole day.

    Raises:
        ValueError: If the value is not a recognizable date.
    """
    raw = raw.strip()
    if len(raw) == 10:
        day = date.fromisoformat(raw)
        if end_of_day:
            return datetime.combine(day, time.max)
        return datetime.combine(day, time.min)

    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def minutes_from_now(minutes: int) -> datetime:
    """Return naive UTC ``now + minutes``."""
    return utcnow() + timedelta(minutes=minutes)
