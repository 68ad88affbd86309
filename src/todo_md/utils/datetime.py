"""Datetime utilities with day-granularity arithmetic.

This module provides the date functions shared by the due-date evaluator,
the edit producers and the CLI. Nothing here reads the clock except
``local_now``, which only the CLI calls; the core always receives ``now``
as an argument.
"""

import re
from calendar import monthrange
from datetime import date, datetime
from typing import Optional

ISO_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
ISO_DATETIME_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})(?::(\d{2}))?$')


def local_now() -> datetime:
    """Return the current moment as a timezone-aware local datetime.

    Returns:
        Current datetime with the local timezone attached
    """
    return datetime.now().astimezone()


def parse_iso_date(value: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string.

    Args:
        value: Date string to parse

    Returns:
        The parsed date, or None if the string is not a valid calendar date
    """
    match = ISO_DATE_RE.match(value)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def parse_iso_datetime(value: str) -> Optional[datetime]:
    """Parse a ``YYYY-MM-DDTHH:MM[:SS]`` string into a naive datetime.

    Args:
        value: Datetime string to parse

    Returns:
        The parsed datetime, or None if it is malformed or out of range
    """
    match = ISO_DATETIME_RE.match(value)
    if not match:
        return None
    year, month, day, hour, minute, second = match.groups()
    try:
        return datetime(int(year), int(month), int(day),
                        int(hour), int(minute), int(second or 0))
    except ValueError:
        return None


def parse_date_or_datetime(value: str) -> Optional[date]:
    """Parse either ISO form and return its calendar date."""
    parsed_dt = parse_iso_datetime(value)
    if parsed_dt is not None:
        return parsed_dt.date()
    return parse_iso_date(value)


def align_to(dt: datetime, reference: datetime) -> datetime:
    """Give a naive ``dt`` the timezone of ``reference`` so they can be compared.

    Args:
        dt: Datetime parsed from the markup (usually naive)
        reference: The injected "now"

    Returns:
        ``dt`` with matching awareness
    """
    if dt.tzinfo is None and reference.tzinfo is not None:
        return dt.replace(tzinfo=reference.tzinfo)
    if dt.tzinfo is not None and reference.tzinfo is None:
        return dt.replace(tzinfo=None)
    return dt


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def add_months(value: date, months: int) -> date:
    """Add months to a date, clamping the day to the end of the target month."""
    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def months_between(start: date, end: date) -> int:
    """Number of calendar month boundaries from ``start`` to ``end``."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def format_iso_date(value: datetime, include_time: bool = False) -> str:
    """Format a datetime the way the markup stores dates.

    Args:
        value: Datetime to format
        include_time: Append ``THH:MM:SS`` when True

    Returns:
        ``YYYY-MM-DD`` or ``YYYY-MM-DDTHH:MM:SS``
    """
    if include_time:
        return value.strftime('%Y-%m-%dT%H:%M:%S')
    return value.strftime('%Y-%m-%d')
