"""Idle-time audit: worked billable hours against daily capacity."""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from escala.core.config import IDLENESS_ATTENTION_THRESHOLD, IDLENESS_HIGH_THRESHOLD, SLOT_CAPACITY_HOURS
from escala.core.constants import DAILY_CAPACITY_HOURS, IDLENESS_LABELS, IdlenessStatus
from escala.core.models import Employee, Period, Schedule
from escala.core.types import EmployeeId, IdlenessRow

from .payroll import evaluate_day


class IdlenessThresholds(BaseModel):
    """Idle-fraction bands. Presentation policy, overridable per call."""

    high: float = Field(default=IDLENESS_HIGH_THRESHOLD, ge=0, le=1)
    attention: float = Field(default=IDLENESS_ATTENTION_THRESHOLD, ge=0, le=1)


def classify_idleness(idle_ratio: float, thresholds: IdlenessThresholds | None = None) -> IdlenessStatus:
    thresholds = thresholds or IdlenessThresholds()
    if idle_ratio > thresholds.high:
        return IdlenessStatus.HIGH
    if idle_ratio > thresholds.attention:
        return IdlenessStatus.ATTENTION
    return IdlenessStatus.EFFICIENT


def audit_employee(
    employee: Employee,
    schedule: Schedule | None,
    period: Period,
    thresholds: IdlenessThresholds | None = None,
) -> IdlenessRow:
    capacity = 0.0
    worked = 0.0
    lost = 0.0
    for date in period.days():
        day = evaluate_day(schedule.shift_on(date) if schedule is not None else None, date)
        if not day.working:
            continue
        capacity += DAILY_CAPACITY_HOURS
        worked += len(day.paid_slots) * SLOT_CAPACITY_HOURS
        lost += len(day.cancelled_slots) * SLOT_CAPACITY_HOURS

    idle = max(0.0, capacity - worked)
    ratio = idle / capacity if capacity else 0.0
    status = classify_idleness(ratio, thresholds)
    return {
        "employee_id": EmployeeId(employee.id),
        "name": employee.name,
        "capacity_hours": capacity,
        "worked_hours": worked,
        "idle_hours": idle,
        "idle_ratio": round(ratio, 4),
        "status": status.value,
        "label": IDLENESS_LABELS[status],
        "lost_hours": lost,
    }


def audit_idleness(
    employees: Iterable[Employee],
    schedules: Mapping[str, Schedule],
    period: Period,
    thresholds: IdlenessThresholds | None = None,
) -> list[IdlenessRow]:
    """
    Idle hours per employee, most idle first.

    Every working day accrues 12h of capacity regardless of contract.
    Cancelled bookings do not count as worked and are tallied per employee
    in `lost_hours`.
    """
    rows = [audit_employee(emp, schedules.get(emp.id), period, thresholds) for emp in employees]
    rows.sort(key=lambda row: row["idle_hours"], reverse=True)
    return rows
