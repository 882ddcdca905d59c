# escala/routes/reports.py
"""
Report routes: payroll, calendar totals, idleness audit, annual overview.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from escala.auth.auth import get_current_user
from escala.core.helpers import can_see_salary, ensure_can_view_employee, is_own_data_only, strip_salary_data
from escala.core.logging_config import get_logger
from escala.core.models import Employee
from escala.core.report_export import payroll_report_to_csv
from escala.core.schedule import IdlenessThresholds, aggregate, annual_summary, audit_idleness, calendar_totals
from escala.core.store import EmployeeNotFound, ScheduleStore
from escala.core.validators import validate_period
from escala.database.database import User
from escala.routes.shared import get_store, not_found

logger = get_logger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _report_employees(store: ScheduleStore, user: User, employee_id: str | None) -> list[Employee]:
    """
    Employees a report covers.

    An explicit employee_id narrows to that employee; TEACHER accounts are
    always narrowed to their own employee.
    """
    if is_own_data_only(user):
        employee_id = user.employee_id
        if employee_id is None:
            return []
    if employee_id is None:
        return store.list_employees()
    ensure_can_view_employee(user, employee_id)
    try:
        return [store.get_employee(employee_id)]
    except EmployeeNotFound as e:
        raise not_found(e)


def _build_payroll(store: ScheduleStore, user: User, year: int, month: int | None, employee_id: str | None):
    period = validate_period(year, month)
    employees = _report_employees(store, user, employee_id)
    report = aggregate(employees, store.schedules(), period, store.deductions, store.hourly_rate)
    target = employees[0].id if len(employees) == 1 else None
    if not can_see_salary(user, target):
        return strip_salary_data(report)
    return report


@router.get("/payroll")
async def payroll_report(
    year: int = Query(...),
    month: int | None = Query(None),
    employee_id: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Hours per bucket, gross and net for a month, or a whole year when month is omitted."""
    return _build_payroll(store, current_user, year, month, employee_id)


@router.get("/payroll.csv")
async def payroll_report_csv(
    year: int = Query(...),
    month: int | None = Query(None),
    employee_id: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    report = _build_payroll(store, current_user, year, month, employee_id)
    suffix = f"{year}_{month:02d}" if month else str(year)
    return Response(
        content=payroll_report_to_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="relatorio_{suffix}.csv"'},
    )


@router.get("/calendar-totals")
async def calendar_header_totals(
    year: int = Query(...),
    month: int = Query(...),
    employee_id: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    period = validate_period(year, month)
    employees = _report_employees(store, current_user, employee_id)
    return calendar_totals(employees, store.schedules(), period, store.hourly_rate)


@router.get("/idleness")
async def idleness_audit(
    year: int = Query(...),
    month: int | None = Query(None),
    high: float | None = Query(None, ge=0, le=1),
    attention: float | None = Query(None, ge=0, le=1),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Idle hours per employee, most idle first. Thresholds may be overridden."""
    period = validate_period(year, month)
    overrides = {key: value for key, value in (("high", high), ("attention", attention)) if value is not None}
    thresholds = IdlenessThresholds(**overrides)
    employees = _report_employees(store, current_user, None)
    return audit_idleness(employees, store.schedules(), period, thresholds)


@router.get("/annual")
async def annual_overview(
    year: int = Query(...),
    employee_id: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Twelve months: live figures where shifts exist, history otherwise."""
    validate_period(year)
    employees = _report_employees(store, current_user, employee_id)
    target = employees[0].id if len(employees) == 1 else None
    months = annual_summary(
        employees,
        store.schedules(),
        year,
        store.deductions,
        store.hourly_rate,
        # Consolidated history describes the whole team
        history=store.history if employee_id is None and not is_own_data_only(current_user) else None,
    )
    if not can_see_salary(current_user, target):
        months = [{"month": row["month"], "label": row["label"], "source": row["source"], "paid_hours": row["paid_hours"]} for row in months]
    return {"year": year, "months": months}
