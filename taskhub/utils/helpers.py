"""Shared input parsing helpers for query strings and JSON bodies.

parse_int_input:       "42" → 42, raises ValidationError on junk
parse_bool_input:      "true" / "0" / True → bool, raises ValidationError on junk
parse_datetime_input:  ISO date or datetime → aware UTC datetime
"""

from datetime import date, datetime, time, timezone

from taskhub.core.exceptions import ValidationError

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def parse_int_input(value, name: str):
    """Parse an integer; None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer", details={name: "invalid"})
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{name} must be an integer", details={name: "invalid"})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", details={name: "invalid"}) from None


def parse_bool_input(value, name: str):
    """Parse a boolean from a JSON bool or a query-string flag; None stays None."""
    if value is None or isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValidationError(f"{name} must be true or false", details={name: "invalid"})


def parse_datetime_input(value, name: str, *, end_of_day: bool = False):
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Naive values are taken as UTC. A date-only value maps to the start of
    the day, or to its last instant when ``end_of_day`` is set (inclusive
    upper bounds).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value).strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        return as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date", details={name: "invalid"}) from None


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
