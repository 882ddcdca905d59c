"""
Hours and payroll aggregation.

Every consumer (calendar header, reports, annual overview, idleness audit)
evaluates days through `evaluate_day` so the paid-hours rule lives in one
place.
"""

import datetime
from collections.abc import Iterable, Mapping
from typing import NamedTuple

from escala.core.config import DEFAULT_HOURLY_RATE, SLOT_CAPACITY_HOURS
from escala.core.constants import BILLABLE_SHIFT_ORDER, BILLABLE_SHIFT_TYPES, SLOT_BUCKET, Bucket, Slot
from escala.core.holidays import is_non_working_day
from escala.core.models import DeductionTable, Employee, HistoricalMonth, Period, Schedule, Shift
from escala.core.types import (
    CalendarTotals,
    EmployeeId,
    EmployeePayroll,
    MonthSummary,
    PayrollReport,
    PayrollTotals,
)

MONTH_LABELS = ("JAN", "FEV", "MAR", "ABR", "MAI", "JUN", "JUL", "AGO", "SET", "OUT", "NOV", "DEZ")


class DayEvaluation(NamedTuple):
    """Outcome of the paid-hours rule for one employee on one date."""

    working: bool
    shift_type: str | None
    paid_slots: tuple[Slot, ...]
    cancelled_slots: tuple[Slot, ...]
    day_off: bool


def evaluate_day(shift: Shift | None, date: datetime.date) -> DayEvaluation:
    """
    Apply the paid-hours rule to a single date.

    - Weekends and holidays never pay and never count as a day off.
    - No record, or a non-billable type (FINAL, OFF), is a day off.
    - A billable record without active slots is a day off.
    - Active slots pay 4h each unless their booking is cancelled.
    """
    if is_non_working_day(date):
        return DayEvaluation(False, None, (), (), False)

    if shift is None or shift.type not in BILLABLE_SHIFT_TYPES:
        return DayEvaluation(True, shift.type.value if shift else None, (), (), True)

    if not shift.active_slots:
        return DayEvaluation(True, shift.type.value, (), (), True)

    paid = tuple(slot for slot in shift.active_slots if not shift.is_slot_cancelled(slot))
    cancelled = tuple(slot for slot in shift.active_slots if shift.is_slot_cancelled(slot))
    return DayEvaluation(True, shift.type.value, paid, cancelled, False)


def _empty_type_hours() -> dict[str, float]:
    return {shift_type.value: 0.0 for shift_type in BILLABLE_SHIFT_ORDER}


def summarize_employee(
    employee: Employee,
    schedule: Schedule | None,
    period: Period,
    hourly_rate: float = DEFAULT_HOURLY_RATE,
) -> EmployeePayroll:
    """
    Paid hours per bucket, gross value and day-off count for one employee.

    An employee without a schedule yields zero hours and one day off per
    working day of the period.
    """
    bucket_hours = {Bucket.H40: 0.0, Bucket.H20: 0.0}
    hours_by_type = _empty_type_hours()
    days_off = 0
    lost_hours = 0.0

    for date in period.days():
        shift = schedule.shift_on(date) if schedule is not None else None
        day = evaluate_day(shift, date)
        if not day.working:
            continue
        if day.day_off:
            days_off += 1
            continue
        for slot in day.paid_slots:
            bucket_hours[SLOT_BUCKET[slot]] += SLOT_CAPACITY_HOURS
            hours_by_type[day.shift_type] += SLOT_CAPACITY_HOURS
        lost_hours += len(day.cancelled_slots) * SLOT_CAPACITY_HOURS

    hours_40h = bucket_hours[Bucket.H40]
    hours_20h = bucket_hours[Bucket.H20]
    return {
        "employee_id": EmployeeId(employee.id),
        "name": employee.name,
        "hours_40h": hours_40h,
        "hours_20h": hours_20h,
        "paid_hours": hours_40h + hours_20h,
        "gross_40h": round(hours_40h * hourly_rate, 2),
        "gross_20h": round(hours_20h * hourly_rate, 2),
        "gross_value": round((hours_40h + hours_20h) * hourly_rate, 2),
        "days_off": days_off,
        "hours_by_type": hours_by_type,
        "lost_hours": lost_hours,
        "lost_value": round(lost_hours * hourly_rate, 2),
    }


def _totals(rows: list[EmployeePayroll], deductions: DeductionTable, hourly_rate: float) -> PayrollTotals:
    hours_40h = sum(row["hours_40h"] for row in rows)
    hours_20h = sum(row["hours_20h"] for row in rows)
    gross_40h = hours_40h * hourly_rate
    gross_20h = hours_20h * hourly_rate
    net_40h = gross_40h - deductions.total(Bucket.H40)
    net_20h = gross_20h - deductions.total(Bucket.H20)

    hours_by_type = _empty_type_hours()
    for row in rows:
        for code, hours in row["hours_by_type"].items():
            hours_by_type[code] += hours

    lost_hours = sum(row["lost_hours"] for row in rows)
    ir = deductions.h40.ir + deductions.h20.ir
    inss = deductions.h40.inss + deductions.h20.inss
    unimed = deductions.h40.unimed + deductions.h20.unimed

    return {
        "hours_40h": hours_40h,
        "hours_20h": hours_20h,
        "paid_hours": hours_40h + hours_20h,
        "gross_40h": round(gross_40h, 2),
        "gross_20h": round(gross_20h, 2),
        "gross_value": round(gross_40h + gross_20h, 2),
        "net_40h": round(net_40h, 2),
        "net_20h": round(net_20h, 2),
        "net_value": round(net_40h + net_20h, 2),
        "ir": round(ir, 2),
        "inss": round(inss, 2),
        "unimed": round(unimed, 2),
        "total_deductions": round(ir + inss + unimed, 2),
        "days_off": sum(row["days_off"] for row in rows),
        "hours_by_type": hours_by_type,
        "lost_hours": lost_hours,
        "lost_value": round(lost_hours * hourly_rate, 2),
    }


def aggregate(
    employees: Iterable[Employee],
    schedules: Mapping[str, Schedule],
    period: Period,
    deductions: DeductionTable | None = None,
    hourly_rate: float = DEFAULT_HOURLY_RATE,
) -> PayrollReport:
    """
    Payroll report for a month, or for all twelve months of a year.

    Net values subtract each bucket's deductions once from the bucket's
    summed gross. Nets may be negative; callers that display them decide
    whether to clamp.

    Args:
        employees: Employees to include, in output order
        schedules: Schedule per employee id (missing means no shifts)
        period: Month or year to aggregate
        deductions: Deduction table, zero when omitted
        hourly_rate: R$ per paid hour

    Returns:
        Report with one row per employee and the summed totals
    """
    deductions = deductions or DeductionTable()
    rows = [summarize_employee(emp, schedules.get(emp.id), period, hourly_rate) for emp in employees]
    return {
        "year": period.year,
        "month": period.month,
        "hourly_rate": hourly_rate,
        "per_employee": rows,
        "totals": _totals(rows, deductions, hourly_rate),
    }


def calendar_totals(
    employees: Iterable[Employee],
    schedules: Mapping[str, Schedule],
    period: Period,
    hourly_rate: float = DEFAULT_HOURLY_RATE,
) -> CalendarTotals:
    """Bucket hours and estimated gross shown above the calendar."""
    totals = aggregate(employees, schedules, period, hourly_rate=hourly_rate)["totals"]
    return {
        "hours_40h": totals["hours_40h"],
        "hours_20h": totals["hours_20h"],
        "total_hours": totals["paid_hours"],
        "gross_value": totals["gross_value"],
    }


def _has_shifts(schedules: Iterable[Schedule], year: int, month: int) -> bool:
    prefix = f"{year:04d}-{month:02d}-"
    return any(key.startswith(prefix) for schedule in schedules for key in schedule.shifts)


def annual_summary(
    employees: Iterable[Employee],
    schedules: Mapping[str, Schedule],
    year: int,
    deductions: DeductionTable | None = None,
    hourly_rate: float = DEFAULT_HOURLY_RATE,
    history: Iterable[HistoricalMonth] | None = None,
) -> list[MonthSummary]:
    """
    Twelve-month overview.

    Months with any shift record use live aggregation, with the net clamped
    at zero for display. Months without shifts fall back to the consolidated
    `history` row for that month when one exists (rows without a year apply
    to every year).
    """
    employees = list(employees)
    deductions = deductions or DeductionTable()
    history_by_month = {item.month: item for item in history or [] if item.year in (None, year)}
    employee_ids = {emp.id for emp in employees}
    relevant = [schedule for emp_id, schedule in schedules.items() if emp_id in employee_ids]

    months: list[MonthSummary] = []
    for month in range(1, 13):
        label = MONTH_LABELS[month - 1]
        if _has_shifts(relevant, year, month):
            totals = aggregate(employees, schedules, Period(year=year, month=month), deductions, hourly_rate)["totals"]
            # Deductions only apply to months that actually produced something
            if totals["gross_value"] > 0:
                taxes = totals["ir"] + totals["inss"]
                unimed = totals["unimed"]
            else:
                taxes = unimed = 0.0
            months.append(
                {
                    "month": month,
                    "label": label,
                    "source": "REAL",
                    "gross_40h": totals["gross_40h"],
                    "gross_20h": totals["gross_20h"],
                    "taxes": round(taxes, 2),
                    "unimed": round(unimed, 2),
                    "net": round(max(0.0, totals["gross_value"] - taxes - unimed), 2),
                    "paid_hours": totals["paid_hours"],
                }
            )
        elif month in history_by_month:
            item = history_by_month[month]
            months.append(
                {
                    "month": month,
                    "label": item.label or label,
                    "source": "FORECAST",
                    "gross_40h": item.gross_40h,
                    "gross_20h": item.gross_20h,
                    "taxes": item.deductions,
                    "unimed": item.unimed,
                    "net": item.net,
                    "paid_hours": 0.0,
                }
            )
        else:
            months.append(
                {
                    "month": month,
                    "label": label,
                    "source": "EMPTY",
                    "gross_40h": 0.0,
                    "gross_20h": 0.0,
                    "taxes": 0.0,
                    "unimed": 0.0,
                    "net": 0.0,
                    "paid_hours": 0.0,
                }
            )
    return months
