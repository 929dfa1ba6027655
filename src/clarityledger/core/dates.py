"""Calendar-date helpers.

All recurrence and budget arithmetic works on plain ``datetime.date`` values
(year/month/day, no time or timezone). Month keys are ``YYYY-MM`` strings.
"""

import calendar
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month, leap-year aware."""
    return calendar.monthrange(year, month)[1]


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_months(value: date, months: int, anchor_day: int | None = None) -> date:
    """Shift by whole months, clamping the day to the target month's length.

    ``anchor_day`` replaces the day of ``value`` before clamping, so a series
    anchored on the 31st returns to the 31st after passing a short month.
    """
    first = value.replace(day=1) + relativedelta(months=months)
    day = anchor_day if anchor_day is not None else value.day
    return first.replace(day=min(day, days_in_month(first.year, first.month)))


def add_years(value: date, years: int) -> date:
    """Shift by whole years; Feb 29 falls back to Feb 28 in common years."""
    return value + relativedelta(years=years)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_key(key: str) -> date:
    """First day of the month named by a ``YYYY-MM`` key."""
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def previous_month_key(key: str) -> str:
    """``YYYY-MM`` key of the calendar month before ``key``."""
    return month_key(parse_month_key(key) - relativedelta(months=1))


def month_range(start: date, end: date) -> list[str]:
    """Month keys from ``start``'s month through ``end``'s month, inclusive."""
    keys = []
    current = start.replace(day=1)
    while current <= end:
        keys.append(month_key(current))
        current += relativedelta(months=1)
    return keys


def month_bounds(key: str) -> tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    first = parse_month_key(key)
    return first, first.replace(day=days_in_month(first.year, first.month))
