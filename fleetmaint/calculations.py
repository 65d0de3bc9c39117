"""Helper functions for due-status calculations."""

from datetime import date
from dateutil.relativedelta import relativedelta
from typing import Optional

from .status import Status


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)."""
    return (end - start).days


def calc_km_remaining(
    interval: Optional[float], current_miles: float, last_miles: float
) -> Optional[float]:
    """
    Calculate km left in the interval: interval - (current - last).

    A current reading below the last service is treated as zero distance
    driven; callers detect and report that case separately.
    """
    if interval is None:
        return None
    driven = max(current_miles - last_miles, 0)
    return interval - driven


def calc_days_remaining(
    interval_days: Optional[int], last_date: Optional[date], now: date
) -> Optional[int]:
    """Calculate days left in the interval: interval - days since last."""
    if interval_days is None or last_date is None:
        return None
    return interval_days - days_between(last_date, now)


def calc_due_miles(last_miles: float, interval: Optional[float]) -> Optional[float]:
    """Calculate next due odometer reading: last + interval."""
    if interval is None:
        return None
    return last_miles + interval


def calc_due_date(last_date: Optional[date], interval_days: Optional[int]) -> Optional[date]:
    """Calculate next due date: last + interval days."""
    if interval_days is None or last_date is None:
        return None
    return last_date + relativedelta(days=interval_days)


def check_status(remaining: float, due_threshold: float, upcoming_threshold: float) -> Status:
    """Classify one dimension by how much of its interval remains."""
    if remaining <= 0:
        return Status.OVERDUE
    if remaining <= due_threshold:
        return Status.DUE
    if remaining <= upcoming_threshold:
        return Status.UPCOMING
    return Status.OK
