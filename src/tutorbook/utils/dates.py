"""
Date and time helpers.

The API exchanges ISO-8601 timestamps in UTC (``2025-11-20T10:00:00Z``).
Display helpers convert them to the local timezone first; naive
datetimes are treated as local time.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from dateutil.parser import isoparse


DateLike = Union[str, datetime, date]


def parse_datetime(value: DateLike) -> datetime:
    """
    Parse an API timestamp into a timezone-aware datetime.

    Args:
        value: ISO-8601 string (``Z`` suffix and nanosecond fractions allowed),
            datetime or date

    Returns:
        Aware datetime (naive inputs are assumed to be local time)

    Raises:
        ValueError: If the string is not ISO-8601

    Examples:
        >>> parse_datetime("2025-11-20T10:00:00Z").tzinfo is not None
        True
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        # RFC3339Nano fractions (1-9 digits) are truncated to microseconds
        dt = isoparse(value.strip())

    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def _local(value: DateLike) -> datetime:
    return parse_datetime(value).astimezone()


def _now(now: Optional[datetime]) -> datetime:
    return parse_datetime(now) if now is not None else datetime.now(timezone.utc)


def format_date(value: DateLike) -> str:
    """Format as DD.MM.YYYY in local time."""
    return _local(value).strftime("%d.%m.%Y")


def format_time(value: DateLike) -> str:
    """Format as HH:MM in local time."""
    return _local(value).strftime("%H:%M")


def format_date_time(value: DateLike) -> str:
    """Format as DD.MM.YYYY HH:MM in local time."""
    return f"{format_date(value)} {format_time(value)}"


def get_duration(start: DateLike, end: DateLike) -> int:
    """Whole minutes between two timestamps."""
    delta = parse_datetime(end) - parse_datetime(start)
    return int(delta.total_seconds() // 60)


def format_duration(minutes: int) -> str:
    """
    Format a duration in minutes.

    Examples:
        >>> format_duration(90)
        '1 h 30 min'
        >>> format_duration(120)
        '2 h'
        >>> format_duration(45)
        '45 min'
    """
    hours, mins = divmod(minutes, 60)

    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours} h"
    return f"{hours} h {mins} min"


def to_local_date_string(value: DateLike) -> str:
    """
    Format as YYYY-MM-DD in local time.

    Plain ``YYYY-MM-DD`` strings and ``date`` objects pass through
    unchanged, so a calendar day never shifts across timezones.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and len(value.strip()) == 10:
        return date.fromisoformat(value.strip()).isoformat()
    return _local(value).strftime("%Y-%m-%d")


def is_today(value: DateLike, now: Optional[datetime] = None) -> bool:
    return _local(value).date() == _now(now).astimezone().date()


def is_past(value: DateLike, now: Optional[datetime] = None) -> bool:
    return parse_datetime(value) < _now(now)


def is_future(value: DateLike, now: Optional[datetime] = None) -> bool:
    return parse_datetime(value) > _now(now)


def hours_until(value: DateLike, now: Optional[datetime] = None) -> float:
    """Hours from ``now`` until ``value`` (negative when in the past)."""
    return (parse_datetime(value) - _now(now)).total_seconds() / 3600


def get_relative_date(value: DateLike, now: Optional[datetime] = None) -> str:
    """
    Describe a date relative to today.

    Returns:
        "Today", "Tomorrow", "Yesterday", or the formatted date
    """
    day = _local(value).date()
    today = _now(now).astimezone().date()

    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return format_date(value)


def get_week_start(value: DateLike) -> date:
    """Monday of the week containing ``value``."""
    if isinstance(value, date) and not isinstance(value, datetime):
        day = value
    elif isinstance(value, str) and len(value.strip()) == 10:
        day = date.fromisoformat(value.strip())
    else:
        day = _local(value).date()
    return day - timedelta(days=day.weekday())


def get_timezone_offset(now: Optional[datetime] = None) -> str:
    """
    Local UTC offset as ``+HH:MM``.

    Examples:
        >>> get_timezone_offset(datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=3))))
        '+03:00'
    """
    current = now if now is not None and now.tzinfo else datetime.now().astimezone()
    offset = current.utcoffset() or timedelta(0)
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
