# escala/core/types.py

"""
Type definitions for the report structures produced by the core.

Reports are plain dicts (TypedDict) so they serialize straight to JSON,
CSV rows and templates without conversion.
"""

from typing import Literal, NewType, TypedDict

EmployeeId = NewType("EmployeeId", str)
Year = NewType("Year", int)
Month = NewType("Month", int)

Hours = float
MonetaryAmount = float

MonthSource = Literal["REAL", "FORECAST", "EMPTY"]


class EmployeePayroll(TypedDict):
    """Paid hours and gross value of one employee over a period."""

    employee_id: EmployeeId
    name: str
    hours_40h: Hours
    hours_20h: Hours
    paid_hours: Hours
    gross_40h: MonetaryAmount
    gross_20h: MonetaryAmount
    gross_value: MonetaryAmount
    days_off: int
    hours_by_type: dict[str, Hours]
    lost_hours: Hours
    lost_value: MonetaryAmount


class PayrollTotals(TypedDict):
    """Summed figures across every employee of a report, deductions applied."""

    hours_40h: Hours
    hours_20h: Hours
    paid_hours: Hours
    gross_40h: MonetaryAmount
    gross_20h: MonetaryAmount
    gross_value: MonetaryAmount
    net_40h: MonetaryAmount
    net_20h: MonetaryAmount
    net_value: MonetaryAmount
    ir: MonetaryAmount
    inss: MonetaryAmount
    unimed: MonetaryAmount
    total_deductions: MonetaryAmount
    days_off: int
    hours_by_type: dict[str, Hours]
    lost_hours: Hours
    lost_value: MonetaryAmount


class PayrollReport(TypedDict):
    year: Year
    month: Month | None
    hourly_rate: MonetaryAmount
    per_employee: list[EmployeePayroll]
    totals: PayrollTotals


class CalendarTotals(TypedDict):
    """Header figures of the calendar screen."""

    hours_40h: Hours
    hours_20h: Hours
    total_hours: Hours
    gross_value: MonetaryAmount


class MonthSummary(TypedDict):
    """One row of the annual overview."""

    month: Month
    label: str
    source: MonthSource
    gross_40h: MonetaryAmount
    gross_20h: MonetaryAmount
    taxes: MonetaryAmount
    unimed: MonetaryAmount
    net: MonetaryAmount
    paid_hours: Hours


class IdlenessRow(TypedDict):
    """Capacity versus worked hours of one employee."""

    employee_id: EmployeeId
    name: str
    capacity_hours: Hours
    worked_hours: Hours
    idle_hours: Hours
    idle_ratio: float
    status: str
    label: str
    lost_hours: Hours
