"""Recurring schedule rules - calendar stepping and due checks"""

from datetime import datetime, timedelta
from typing import Optional
from pocket_ledger.domain.models import Frequency
from pocket_ledger.domain.exceptions import ValidationError
from pocket_ledger.utils.date_utils import add_months, add_years


def advance(moment: datetime, frequency) -> datetime:
    """
    Step a scheduled occurrence forward by exactly one frequency unit.

    Calendar rules:
    - daily:   +1 day
    - weekly:  +7 days
    - monthly: same day next month, clamped to month end (Jan 31 -> Feb 29 in 2024)
    - yearly:  same month/day next year (Feb 29 -> Feb 28 on non-leap years)

    Time-of-day is preserved. The step is always taken from `moment`, never from
    wall-clock time, so a late run still lands on the intended schedule.
    """
    frequency = Frequency.parse(frequency)

    if frequency is Frequency.DAILY:
        return moment + timedelta(days=1)
    if frequency is Frequency.WEEKLY:
        return moment + timedelta(weeks=1)
    if frequency is Frequency.MONTHLY:
        return add_months(moment, 1)
    return add_years(moment, 1)


def is_due(template, now: datetime) -> bool:
    """
    A template is due when it is active, its next occurrence has arrived and
    that occurrence does not fall after its end date.

    Works on anything exposing is_active, next_occurrence and end_date.
    """
    if not template.is_active:
        return False
    if template.next_occurrence > now:
        return False
    return template.end_date is None or template.next_occurrence <= template.end_date


def is_past_end(next_occurrence: datetime, end_date: Optional[datetime]) -> bool:
    """Schedule is exhausted once the next occurrence lands strictly after end_date"""
    return end_date is not None and next_occurrence > end_date


def validate_date_range(start_date: datetime, end_date: Optional[datetime]) -> None:
    if end_date is not None and end_date <= start_date:
        raise ValidationError(
            f"End date {end_date.isoformat()} must be after start date {start_date.isoformat()}"
        )
