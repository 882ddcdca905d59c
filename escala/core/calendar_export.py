"""iCal export of an employee's booked slots."""

import calendar
import datetime
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event

from escala.core.config import LOCAL_TIMEZONE, TIME_FORMAT_HM
from escala.core.constants import SLOT_INFO, ShiftType, Slot
from escala.core.models import Employee, Schedule, Shift

#: Shift type names shown in calendar clients.
SHIFT_NAMES: dict[str, str] = {
    "T1": "Técnico",
    "Q1": "Qualificação",
    "PLAN": "Planejamento",
    "FINAL": "Fim de Semana",
    "OFF": "Folga",
}


def _slot_times(date: datetime.date, slot: Slot) -> tuple[datetime.datetime, datetime.datetime]:
    tz = ZoneInfo(LOCAL_TIMEZONE)
    info = SLOT_INFO[slot]
    start = datetime.datetime.strptime(info["start"], TIME_FORMAT_HM).time()
    end = datetime.datetime.strptime(info["end"], TIME_FORMAT_HM).time()
    return (
        datetime.datetime.combine(date, start, tzinfo=tz),
        datetime.datetime.combine(date, end, tzinfo=tz),
    )


def _create_slot_event(employee: Employee, shift: Shift, slot: Slot) -> Event:
    """
    Build one VEVENT for a booked slot.

    Args:
        employee: Owner of the schedule
        shift: Shift carrying the slot
        slot: The booked slot

    Returns:
        icalendar Event
    """
    detail = shift.slot_details.get(slot)
    course = (detail.course_name if detail else "") or shift.course_name
    type_name = SHIFT_NAMES.get(shift.type.value, shift.type.value)

    event = Event()
    event.add("summary", f"{course} ({type_name})" if course else type_name)
    event.add("uid", f"{shift.date.isoformat()}_{employee.id}_{slot.value}@escala")

    start_dt, end_dt = _slot_times(shift.date, slot)
    event.add("dtstart", start_dt)
    event.add("dtend", end_dt)

    description = [f"Turno: {SLOT_INFO[slot]['label']}", f"Tipo: {shift.type.value}"]
    if detail and detail.school_name:
        description.append(f"Unidade: {detail.school_name}")
        event.add("location", detail.school_name)
    if detail and detail.start_date and detail.end_date and detail.start_date != detail.end_date:
        description.append(f"Período: {detail.start_date.isoformat()} a {detail.end_date.isoformat()}")
    event.add("description", "\n".join(description))
    event.add("dtstamp", datetime.datetime.now(datetime.timezone.utc))
    return event


def generate_ical(
    employee: Employee,
    schedule: Schedule,
    start_date: datetime.date,
    end_date: datetime.date,
) -> str:
    """
    iCal calendar with one event per active, non-cancelled slot in the range.

    OFF and FINAL records produce no events.
    """
    cal = Calendar()
    cal.add("prodid", "-//Escala//escala.app//")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", f"Escala {employee.name}")
    cal.add("x-wr-timezone", LOCAL_TIMEZONE)

    current_date = start_date
    while current_date <= end_date:
        shift = schedule.shift_on(current_date)
        if shift is not None and shift.type not in (ShiftType.OFF, ShiftType.FINAL):
            for slot in shift.active_slots:
                if not shift.is_slot_cancelled(slot):
                    cal.add_component(_create_slot_event(employee, shift, slot))
        current_date += datetime.timedelta(days=1)

    return cal.to_ical().decode("utf-8")


def generate_ical_for_month(employee: Employee, schedule: Schedule, year: int, month: int) -> str:
    start_date = datetime.date(year, month, 1)
    end_date = datetime.date(year, month, calendar.monthrange(year, month)[1])
    return generate_ical(employee, schedule, start_date, end_date)
