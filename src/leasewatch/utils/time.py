"""Time utilities."""

from datetime import datetime, timedelta, timezone
from typing import Optional

# Go encodes an unset time.Time as the zero instant.
ZERO_INSTANT_YEAR = 1


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to aware UTC, mapping the zero instant to None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    if value.year == ZERO_INSTANT_YEAR:
        return None
    return value


def nanos_to_timedelta(nanos: int) -> timedelta:
    """Convert a nanosecond duration to a timedelta (microsecond precision)."""
    return timedelta(microseconds=nanos // 1000)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp or a Go time.String() rendering.

    Go renders times as "2006-01-02 15:04:05.999999999 -0700 MST"; the zone
    abbreviation is dropped and the fraction truncated to microseconds.
    Returns None for empty or unparseable input.
    """
    if not text:
        return None
    text = text.strip()
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    parts = text.split(" ")
    if len(parts) < 3:
        return None
    day, clock, offset = parts[0], parts[1], parts[2]
    if "." in clock:
        whole, fraction = clock.split(".", 1)
        clock = f"{whole}.{fraction[:6]}"
    else:
        clock = f"{clock}.0"
    try:
        return ensure_utc(datetime.strptime(f"{day} {clock} {offset}", "%Y-%m-%d %H:%M:%S.%f %z"))
    except ValueError:
        return None
