"""Date manipulation utilities"""

import calendar
from datetime import datetime, timezone


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(moment: datetime, months: int = 1) -> datetime:
    """Same day-of-month `months` later, clamped to the last day of a shorter month"""
    total = moment.month - 1 + months
    year = moment.year + total // 12
    month = total % 12 + 1
    day = min(moment.day, days_in_month(year, month))
    return moment.replace(year=year, month=month, day=day)


def add_years(moment: datetime, years: int = 1) -> datetime:
    """Same month/day `years` later (Feb 29 becomes Feb 28 on non-leap years)"""
    year = moment.year + years
    day = min(moment.day, days_in_month(year, moment.month))
    return moment.replace(year=year, day=day)


def to_utc_naive(moment: datetime) -> datetime:
    """Normalize to naive UTC, the form timestamps are stored in"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
