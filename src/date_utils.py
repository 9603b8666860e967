"""
Calendar helpers for contract billing dates.

Everything here works on plain ``date`` values. Spreadsheet cells may hold
either serial day numbers or ISO text, so both are normalised through
``serial_to_date`` before any comparison happens.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

# Serial 2 lands on Jan 1 1900 once the phantom Feb 29 1900 is accounted for
SPREADSHEET_EPOCH = date(1900, 1, 1)
SERIAL_OFFSET = 2

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    """Strip the time-of-day from a datetime; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def serial_to_date(value: Any) -> Optional[date]:
    """
    Convert a spreadsheet cell into a calendar date.

    Args:
        value: Serial day number, ISO date text, date/datetime, or empty

    Returns:
        date: The calendar date, or None when the cell is empty or unreadable

    Examples:
        serial_to_date(45658) -> date(2025, 1, 1)
        serial_to_date("2025-12-01") -> date(2025, 12, 1)
        serial_to_date("") -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (datetime, date)):
        return as_date(value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return SPREADSHEET_EPOCH + timedelta(days=math.floor(value) - SERIAL_OFFSET)
        except OverflowError:
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None

    return None


def days_between(later: DateLike, earlier: DateLike) -> int:
    """
    Whole calendar days from ``earlier`` to ``later``.

    Negative when ``later`` is actually before ``earlier``.
    """
    return (as_date(later) - as_date(earlier)).days


def next_cycle_date(anchor: date, today: date, cycle_days: int) -> Optional[date]:
    """
    First date of the form ``anchor + k * cycle_days`` (k >= 1) after today.

    A candidate equal to today is stepped past, so the result is always in
    the future relative to ``today``. Returns None when the result would fall
    beyond the last representable date.
    """
    if cycle_days <= 0:
        raise ValueError(f"cycle_days must be positive, got {cycle_days}")

    elapsed = days_between(today, anchor)
    cycles = max(1, elapsed // cycle_days + 1)
    try:
        return anchor + timedelta(days=cycles * cycle_days)
    except OverflowError:
        return None


def first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)
