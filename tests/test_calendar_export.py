import datetime
from zoneinfo import ZoneInfo

from icalendar import Calendar

from escala.core.calendar_export import generate_ical, generate_ical_for_month
from escala.core.constants import ShiftType, Slot
from escala.core.models import Employee, Schedule, SlotConfig
from escala.core.schedule import apply_shift_edit

ANA = Employee(id="1", name="Ana Silva")
MONDAY = datetime.date(2025, 3, 10)
TZ = ZoneInfo("America/Porto_Velho")


def _events(ical_str: str):
    return Calendar.from_ical(ical_str).walk("VEVENT")


class TestCalendarExport:
    def test_generate_ical_is_valid(self):
        """Test that generated iCal is valid and contains VCALENDAR and VEVENT."""
        schedule = apply_shift_edit(
            Schedule(employee_id="1"),
            MONDAY,
            ShiftType.T1,
            {Slot.MORNING: SlotConfig(active=True, course_name="Elétrica", school_name="Escola Centro")},
        )

        ical_str = generate_ical(ANA, schedule, MONDAY, MONDAY)

        cal = Calendar.from_ical(ical_str)
        assert "VCALENDAR" in str(cal)
        events = _events(ical_str)
        assert len(events) == 1
        assert str(events[0]["summary"]) == "Elétrica (Técnico)"
        assert str(events[0]["location"]) == "Escola Centro"

    def test_slot_times_in_local_timezone(self):
        schedule = apply_shift_edit(
            Schedule(employee_id="1"), MONDAY, ShiftType.Q1, {Slot.NIGHT: SlotConfig(active=True)}
        )

        event = _events(generate_ical(ANA, schedule, MONDAY, MONDAY))[0]

        assert event["dtstart"].dt == datetime.datetime(2025, 3, 10, 18, 30, tzinfo=TZ)
        assert event["dtend"].dt == datetime.datetime(2025, 3, 10, 22, 30, tzinfo=TZ)

    def test_one_event_per_slot_and_day(self):
        schedule = apply_shift_edit(
            Schedule(employee_id="1"),
            MONDAY,
            ShiftType.T1,
            {
                Slot.MORNING: SlotConfig(active=True, total_hours=12),
                Slot.AFTERNOON: SlotConfig(active=True),
            },
        )

        events = _events(generate_ical_for_month(ANA, schedule, 2025, 3))

        assert len(events) == 4
        uids = {str(event["uid"]) for event in events}
        assert "2025-03-12_1_MORNING@escala" in uids

    def test_cancelled_off_and_final_have_no_events(self):
        schedule = apply_shift_edit(
            Schedule(employee_id="1"), MONDAY, ShiftType.T1, {Slot.MORNING: SlotConfig(active=True, is_cancelled=True)}
        )
        schedule = apply_shift_edit(
            schedule, datetime.date(2025, 3, 11), ShiftType.OFF, {Slot.MORNING: SlotConfig(active=True)}
        )
        schedule = apply_shift_edit(
            schedule, datetime.date(2025, 3, 15), ShiftType.FINAL, {Slot.MORNING: SlotConfig(active=True)}
        )

        assert _events(generate_ical_for_month(ANA, schedule, 2025, 3)) == []
