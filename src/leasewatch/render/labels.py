"""Relative time labels."""

from datetime import datetime, timedelta
from typing import Optional


def time_since(when: Optional[datetime], now: datetime) -> timedelta:
    """Elapsed time since when, clamped at zero."""
    if when is None or now < when:
        return timedelta(0)
    return now - when


def time_until(when: Optional[datetime], now: datetime) -> timedelta:
    """Remaining time until when, clamped at zero."""
    if when is None or when < now:
        return timedelta(0)
    return when - now


def format_duration(duration: timedelta) -> str:
    """Format as H:MM:SS; hours are not wrapped at 24."""
    total = int(duration.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_since(when: Optional[datetime], now: datetime) -> str:
    duration = time_since(when, now)
    if not duration:
        return ""
    return format_duration(duration)


def format_until(when: Optional[datetime], now: datetime) -> str:
    duration = time_until(when, now)
    if not duration:
        return ""
    return format_duration(duration)
