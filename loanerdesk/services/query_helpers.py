"""
Filter and sort helpers shared by the device, log, and ticket queries.

Each helper takes a SQLAlchemy query and returns a narrowed one, so a
service builds its listing by applying whichever filters the caller
supplied, in sequence, then one ``apply_sort`` call.
"""

from datetime import datetime

from sqlalchemy import or_

from loanerdesk.errors import ValidationError
from loanerdesk.timeutil import parse_query_datetime

LIKE_ESCAPE = "\\"


def substring_pattern(value: str) -> str:
    """Build an ILIKE pattern that matches ``value`` literally anywhere."""
    # "%" and "_" in a barcode must not act as wildcards.
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def ilike_any(columns, value: str):
    """OR of case-insensitive substring matches of ``value`` over ``columns``."""
    pattern = substring_pattern(value)
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))


def contains(query, column, value: str | None):
    """Case-insensitive substring match; no-op when ``value`` is empty."""
    if not value:
        return query
    return query.filter(column.ilike(substring_pattern(value), escape=LIKE_ESCAPE))


def equals(query, column, value):
    """Exact match; no-op when ``value`` is None or an empty string."""
    if value is None or value == "":
        return query
    return query.filter(column == value)


def date_range(query, column, start: str | None, end: str | None):
    """
    Restrict ``column`` to ``[start, end]``.

    Both bounds are ISO strings from the query string.  A date-only
    ``end`` includes that whole day.

    Raises:
        ValidationError: If either bound cannot be parsed.
    """
    if start:
        query = query.filter(column >= _parse(start, "startDate"))
    if end:
        query = query.filter(column <= _parse(end, "endDate", end_of_day=True))
    return query


def _parse(raw: str, field: str, end_of_day: bool = False) -> datetime:
    try:
        return parse_query_datetime(raw, end_of_day=end_of_day)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO date: {raw!r}") from exc


def parse_bool(raw: str | None, field: str) -> bool | None:
    """Parse a ``true``/``false`` query parameter; None when absent."""
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{field} must be true or false")


def apply_sort(
    query,
    sortable: dict,
    sort: str | None,
    direction: str | None,
    default: tuple[str, ...],
    tiebreaker,
):
    """
    Order ``query`` by one or more whitelisted fields.

    Args:
        sortable:   Map of public field name -> model column.
        sort:       Comma-separated field names, or None for ``default``.
        direction:  ``asc`` or ``desc`` (default ``desc``), applied to
                    every field.
        default:    Field names used when ``sort`` is empty.
        tiebreaker: Column appended last so equal keys keep a stable order.

    Raises:
        ValidationError: On an unknown field or direction.
    """
    direction = (direction or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationError("order must be 'asc' or 'desc'")

    fields = [f.strip() for f in sort.split(",") if f.strip()] if sort else list(default)
    unknown = [f for f in fields if f not in sortable]
    if unknown:
        raise ValidationError(
            f"Cannot sort by {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(sortable))}"
        )

    columns = [sortable[f] for f in fields] + [tiebreaker]
    if direction == "asc":
        return query.order_by(*(c.asc() for c in columns))
    return query.order_by(*(c.desc() for c in columns))
