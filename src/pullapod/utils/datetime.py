"""Date and time helpers.

All timestamps pullapod writes are timezone-aware UTC. Dates typed by the user
(``YYYY-MM-DD``) are calendar dates and compared on the date part only.
"""

import re
import time
from datetime import date, datetime, timezone

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_unix() -> int:
    """Return the current unix time in whole seconds."""
    return int(time.time())


def now_millis() -> int:
    """Return the current unix time in milliseconds."""
    return int(time.time() * 1000)


def to_iso_timestamp(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into an aware datetime.

    Naive values are treated as UTC. A trailing ``Z`` is accepted.

    Raises:
        ValueError: If the value is not a parseable timestamp
    """
    text = value.strip()
    if not text:
        raise ValueError("empty timestamp")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: str) -> date | None:
    """Parse a ``YYYY-MM-DD`` string into a date.

    Returns:
        The date, or None when the string is not a valid calendar date
    """
    if not DATE_PATTERN.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def date_to_unix(value: date) -> int:
    """Unix seconds for midnight UTC at the start of ``value``."""
    return int(datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp())


def is_date_in_range(
    value: datetime,
    start: date | None = None,
    end: date | None = None,
) -> bool:
    """Check whether ``value`` falls within ``[start, end]`` comparing dates only."""
    day = value.date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def from_unix(timestamp: int | float) -> datetime:
    """Convert unix seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def format_short_date(value: datetime | int | None) -> str:
    """Format as ``Jan 5, 2024`` in local time; unix seconds are accepted."""
    if not value:
        return "Unknown date"
    if isinstance(value, int):
        value = from_unix(value)
    local = value.astimezone()
    return f"{local:%b} {local.day}, {local.year}"


def format_relative_time(timestamp: int | None, now: int | None = None) -> str:
    """Describe a unix timestamp relative to now, e.g. ``3 days ago``.

    Months are 30 days and years 365 days.
    """
    if not timestamp:
        return "unknown"

    diff = (now if now is not None else now_unix()) - timestamp
    if diff < 0:
        return "in the future"

    minutes = diff // 60
    hours = minutes // 60
    days = hours // 24
    units = [
        (days // 365, "year"),
        (days // 30, "month"),
        (days // 7, "week"),
        (days, "day"),
        (hours, "hour"),
        (minutes, "minute"),
    ]
    for amount, unit in units:
        if amount >= 1:
            return f"{amount} {unit} ago" if amount == 1 else f"{amount} {unit}s ago"
    return "just now"
