"""Expansion of multi-day slot bookings onto working days."""

import datetime
import logging
import math

from escala.core.config import EXPANSION_SAFETY_BOUND_DAYS, SLOT_CAPACITY_HOURS
from escala.core.holidays import is_non_working_day

logger = logging.getLogger(__name__)


def days_needed(total_hours: float, capacity_per_day: int = SLOT_CAPACITY_HOURS) -> int:
    """Number of working days a booking of `total_hours` occupies (0 for none)."""
    if not total_hours or total_hours <= 0:
        return 0
    return math.ceil(total_hours / capacity_per_day)


def expand_working_dates(
    start: datetime.date,
    total_hours: float,
    *,
    capacity_per_day: int = SLOT_CAPACITY_HOURS,
    safety_bound: int = EXPANSION_SAFETY_BOUND_DAYS,
) -> list[datetime.date]:
    """
    Working dates occupied by a slot booking, starting at `start` inclusive.

    A booking of zero or negative hours is a single-day booking and returns
    `[start]` even when `start` is not a working day. Otherwise weekends and
    holidays are skipped until ceil(total_hours / capacity_per_day) dates are
    collected. At most `safety_bound` calendar days are walked, never past
    `datetime.date.max`; a booking that does not fit is truncated and a
    warning is logged.

    Args:
        start: First day of the booking
        total_hours: Total course hours for the slot
        capacity_per_day: Hours the slot covers on one day
        safety_bound: Maximum number of calendar days to inspect

    Returns:
        Strictly increasing list of working dates
    """
    needed = days_needed(total_hours, capacity_per_day)
    if needed == 0:
        return [start]

    dates: list[datetime.date] = []
    current = start
    for _ in range(safety_bound):
        if not is_non_working_day(current):
            dates.append(current)
            if len(dates) == needed:
                return dates
        if current == datetime.date.max:
            break
        current += datetime.timedelta(days=1)

    logger.warning(
        "Booking from %s truncated: %d of %d working days found within %d days",
        start,
        len(dates),
        needed,
        safety_bound,
        extra={"extra_fields": {"start": start.isoformat(), "requested_days": needed, "found_days": len(dates)}},
    )
    return dates


def booking_end_date(
    start: datetime.date,
    total_hours: float,
    capacity_per_day: int = SLOT_CAPACITY_HOURS,
) -> datetime.date:
    """Last date of a booking; the start date itself for single-day bookings."""
    dates = expand_working_dates(start, total_hours, capacity_per_day=capacity_per_day)
    return dates[-1] if dates else start
