"""Date and timestamp helpers.

Timestamps are stored as naive UTC. Anything read back without an offset is
taken to be UTC, which also covers legacy rows written before offsets were
recorded. Calendar days always belong to the owner's timezone.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

NEUTRAL_TIME = time(12, 0)


def parse_day(value):
    """Parse a strict ``YYYY-MM-DD`` string into a date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _DAY_PATTERN.match(value):
        raise ValidationError("Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}") from None


def parse_timestamp(value):
    """Parse an ISO timestamp (or datetime) into an aware UTC datetime."""
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Invalid timestamp format")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError("Invalid timestamp format") from None
    return as_utc(parsed)


def as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value):
    """Aware datetime -> naive UTC for the DateTime columns."""
    return as_utc(value).replace(tzinfo=None)


def isoformat_utc(value):
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def utcnow():
    return datetime.now(timezone.utc)


def get_zone(name, fallback="UTC"):
    if not name:
        name = fallback
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}") from None


def local_date(timestamp, zone):
    return as_utc(timestamp).astimezone(zone).date()


def local_today(zone, now=None):
    return local_date(now or utcnow(), zone)


def day_bounds(day, zone):
    """Half-open UTC interval covering the local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_noon(day, zone, offset_minutes=0):
    """Local noon of ``day`` (plus an offset in minutes) as aware UTC."""
    noon = datetime.combine(day, NEUTRAL_TIME, tzinfo=zone)
    return (noon + timedelta(minutes=offset_minutes)).astimezone(timezone.utc)


def day_range(first_day, last_day):
    day = first_day
    while day <= last_day:
        yield day
        day += timedelta(days=1)
