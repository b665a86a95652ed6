from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

SECOND = timedelta(seconds=1)
MINUTE = timedelta(minutes=1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def format_duration(duration: timedelta) -> str:
    """Largest whole unit only: "2 days", "1 hour", "5 minutes", "0 seconds"."""

    if duration >= DAY:
        return _plural(duration // DAY, "day", "days")
    if duration >= HOUR:
        return _plural(duration // HOUR, "hour", "hours")
    if duration >= MINUTE:
        return _plural(duration // MINUTE, "minute", "minutes")
    return _plural(max(duration // SECOND, 0), "second", "seconds")


def get_time_interpretation(
    now: datetime, start: Optional[datetime], end: Optional[datetime]
) -> Optional[str]:
    """
    Relative description of a meeting's time window.

    - before the start: "Starts in 2 hours"
    - after the end: "Ended 5 minutes ago"
    - inside a complete window: "Ongoing"
    - only a start, already passed: "10 minutes ago"
    - only an end, not yet reached: "Ends in 1 hour"

    Returns None when neither bound is known.
    """

    if start is not None and now < start:
        return f"Starts in {format_duration(start - now)}"
    if end is not None and now > end:
        return f"Ended {format_duration(now - end)} ago"
    if start is not None and end is not None:
        return "Ongoing"
    if start is not None:
        return f"{format_duration(now - start)} ago"
    if end is not None:
        return f"Ends in {format_duration(end - now)}"
    return None


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def parse_now(value: Optional[str], tz_name: str = "UTC") -> Optional[datetime]:
    """
    Parse an ISO-8601 clock override. Naive values are read in `tz_name`.
    Returns None for missing or invalid input.
    """

    text = (value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=resolve_timezone(tz_name))
    return parsed


def get_now(value: Optional[str] = None, tz_name: str = "UTC") -> datetime:
    """Clock override when valid, the current time otherwise (always timezone-aware)."""

    return parse_now(value, tz_name) or datetime.now(timezone.utc)
