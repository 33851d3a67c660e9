"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Tuple


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing ``day``"""
    start = day.replace(day=1)
    return start, start.replace(day=days_in_month(day))


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``"""
    return day - timedelta(days=day.weekday())


def shift_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from the month of ``day``"""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month.

    Raises:
        ValueError: If the value is not a valid year-month
    """
    year, _, month = value.partition("-")
    if len(year) != 4 or len(month) != 2 or not (year.isdigit() and month.isdigit()):
        raise ValueError(f"Month must be in YYYY-MM format, got {value!r}")
    return date(int(year), int(month), 1)
