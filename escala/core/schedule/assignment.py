"""Shift edits: slot assignment, multi-day booking merge and default fill."""

import datetime
import logging
from collections.abc import Mapping

from escala.core.config import SLOT_CAPACITY_HOURS
from escala.core.constants import NON_WORKING_DAY_LABEL, SLOT_ORDER, ShiftType, Slot
from escala.core.holidays import is_non_working_day, month_dates
from escala.core.models import Schedule, Shift, SlotConfig, SlotDetail

from .expansion import booking_end_date, expand_working_dates

logger = logging.getLogger(__name__)


def _legacy_course_name(shift: Shift) -> str:
    """First non-empty course in MORNING, AFTERNOON, NIGHT order."""
    for slot in SLOT_ORDER:
        detail = shift.slot_details.get(slot)
        if detail and detail.course_name:
            return detail.course_name
    return shift.course_name


def _stamp_slot(
    shifts: dict[str, Shift],
    date: datetime.date,
    shift_type: ShiftType,
    slot: Slot,
    detail: SlotDetail,
) -> None:
    """
    Ensure a record exists on `date` and put `slot` with `detail` on it.

    An existing OFF record wins: the date keeps no slots and the booking
    does not move to a later day.
    """
    key = date.isoformat()
    existing = shifts.get(key)
    if existing is not None and existing.type == ShiftType.OFF:
        logger.info("Booking of %s skips day off %s", slot.value, key)
        return
    if existing is None:
        shift = Shift(date=date, type=shift_type)
    else:
        shift = existing.model_copy(deep=True)

    if slot not in shift.active_slots:
        shift.active_slots = [s for s in SLOT_ORDER if s in shift.active_slots or s == slot]
    shift.slot_details[slot] = detail.model_copy()
    shift.course_name = _legacy_course_name(shift)
    shifts[key] = shift


def apply_shift_edit(
    schedule: Schedule,
    base_date: datetime.date,
    shift_type: ShiftType,
    slot_configs: Mapping[Slot, SlotConfig],
) -> Schedule:
    """
    Apply one editor action to an employee's schedule.

    The base date's type is always overwritten. OFF clears every slot and
    slot detail on the base date. Each active slot is added to the base date
    and, when its booking exceeds one slot (more than 4 hours), to every
    following working day of the booking. The merge is additive: slots placed
    on a date by another booking survive unless the edit clears that exact
    slot on the base date. The same date and slot written twice keeps the
    last write.

    Args:
        schedule: Current schedule (not modified)
        base_date: Date the editor was opened on
        shift_type: Type chosen in the editor
        slot_configs: Editor state per slot; missing slots count as inactive

    Returns:
        A new Schedule with the edit applied
    """
    shifts = dict(schedule.shifts)
    base_key = base_date.isoformat()

    if shift_type == ShiftType.OFF:
        shifts[base_key] = Shift(date=base_date, type=ShiftType.OFF)
        return Schedule(employee_id=schedule.employee_id, shifts=shifts)

    base = shifts.get(base_key)
    if base is None:
        base = Shift(date=base_date, type=shift_type)
    else:
        base = base.model_copy(deep=True)
        base.type = shift_type
    for slot in SLOT_ORDER:
        config = slot_configs.get(slot)
        if config is not None and config.clear and not config.active:
            base.active_slots = [s for s in base.active_slots if s != slot]
            base.slot_details.pop(slot, None)
    base.course_name = _legacy_course_name(base)
    shifts[base_key] = base

    for slot in SLOT_ORDER:
        config = slot_configs.get(slot)
        if config is None or not config.active:
            continue

        start = config.start_date or base_date
        detail = SlotDetail(
            course_name=config.course_name,
            school_name=config.school_name,
            start_date=start,
            end_date=booking_end_date(start, config.total_hours),
            total_hours=config.total_hours,
            is_cancelled=config.is_cancelled,
        )
        _stamp_slot(shifts, base_date, shift_type, slot, detail)

        if config.total_hours > SLOT_CAPACITY_HOURS:
            for date in expand_working_dates(start, config.total_hours):
                if date != base_date:
                    _stamp_slot(shifts, date, shift_type, slot, detail)

    return Schedule(employee_id=schedule.employee_id, shifts=shifts)


def fill_non_working_days(schedule: Schedule, year: int, month: int) -> Schedule:
    """
    Mark empty weekends and holidays of a month with FINAL records.

    Dates that already have a record keep it.
    """
    shifts = dict(schedule.shifts)
    for date in month_dates(year, month):
        key = date.isoformat()
        if key not in shifts and is_non_working_day(date):
            shifts[key] = Shift(
                date=date,
                type=ShiftType.FINAL,
                active_slots=list(SLOT_ORDER),
                course_name=NON_WORKING_DAY_LABEL,
            )
    return Schedule(employee_id=schedule.employee_id, shifts=shifts)
