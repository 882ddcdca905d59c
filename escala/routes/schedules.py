# escala/routes/schedules.py
"""
Schedule routes: month view, explicit save, shift edits, default fill,
AI proposals and iCal export.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from escala.auth.auth import get_current_user, require_permission
from escala.core.calendar_export import generate_ical_for_month
from escala.core.helpers import ensure_can_view_employee, is_own_data_only
from escala.core.logging_config import get_logger
from escala.core.models import Period, Schedule
from escala.core.schedule import SuggestionError, calendar_totals, parse_suggestions
from escala.core.sentry_config import add_breadcrumb
from escala.core.store import EmployeeNotFound, ScheduleStore
from escala.core.validators import validate_month, validate_period
from escala.database.database import User, get_db
from escala.routes.shared import MonthRequest, ShiftEditRequest, get_store, not_found, record_audit
from escala.services.ai_scheduler import NO_SUGGESTION, AIScheduler

logger = get_logger(__name__)

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


def get_ai_scheduler() -> AIScheduler:
    """Dependency building the Gemini client from the environment (overridden in tests)."""
    return AIScheduler()


def _filter_period(schedule: Schedule, period: Period) -> Schedule:
    """Copy of a schedule holding only the shifts inside the period."""
    prefixes = tuple(f"{period.year:04d}-{month:02d}-" for month in period.months())
    shifts = {key: shift for key, shift in schedule.shifts.items() if key.startswith(prefixes)}
    return Schedule(employee_id=schedule.employee_id, shifts=shifts)


@router.get("")
async def month_schedules(
    year: int = Query(...),
    month: int = Query(...),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Every visible employee's shifts for a month plus the calendar header totals."""
    period = validate_month(year, month)
    employees = store.list_employees()
    if is_own_data_only(current_user):
        employees = [emp for emp in employees if emp.id == current_user.employee_id]

    schedules = store.schedules()
    return {
        "year": year,
        "month": month,
        "schedules": [_filter_period(store.get_schedule(emp.id), period) for emp in employees],
        "totals": calendar_totals(employees, schedules, period, store.hourly_rate),
    }


@router.get("/{employee_id}", response_model=Schedule)
async def employee_schedule(
    employee_id: str,
    year: int | None = Query(None),
    month: int | None = Query(None),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """One employee's shifts, optionally limited to a year or month."""
    ensure_can_view_employee(current_user, employee_id)
    try:
        schedule = store.get_schedule(employee_id)
    except EmployeeNotFound as e:
        raise not_found(e)
    if year is None:
        return schedule
    return _filter_period(schedule, validate_period(year, month))


@router.put("/{employee_id}", response_model=Schedule)
async def save_schedule(
    employee_id: str,
    schedule: Schedule,
    current_user: User = Depends(require_permission("schedules.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Explicit save: replaces the employee's whole shift map."""
    if schedule.employee_id != employee_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employee id mismatch")
    try:
        saved = store.save_schedule(schedule)
    except EmployeeNotFound as e:
        raise not_found(e)
    record_audit(db, current_user, "schedules", "save", f"Saved {len(saved.shifts)} shifts for {employee_id}")
    return saved


@router.post("/{employee_id}/edit", response_model=Schedule)
async def edit_shift(
    employee_id: str,
    edit: ShiftEditRequest,
    current_user: User = Depends(require_permission("schedules.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Apply one editor action (type and slot bookings) on a base date."""
    add_breadcrumb(f"Shift edit {employee_id} {edit.date}", category="store", data={"type": edit.type.value})
    try:
        updated = store.apply_edit(employee_id, edit.date, edit.type, edit.slots)
    except EmployeeNotFound as e:
        raise not_found(e)
    record_audit(
        db,
        current_user,
        "schedules",
        "update",
        f"{edit.type.value} on {edit.date.isoformat()} for {employee_id}",
    )
    return updated


@router.post("/fill-non-working")
async def fill_non_working(
    payload: MonthRequest,
    current_user: User = Depends(require_permission("schedules.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Pre-fill empty weekends and holidays of a month with FINAL records."""
    store.fill_non_working_days(payload.year, payload.month)
    record_audit(db, current_user, "schedules", "update", f"Filled non-working days of {payload.month}/{payload.year}")
    return {"filled": True, "year": payload.year, "month": payload.month}


@router.post("/suggest")
def suggest_schedule(
    payload: MonthRequest,
    current_user: User = Depends(require_permission("schedules.edit")),
    store: ScheduleStore = Depends(get_store),
    ai: AIScheduler = Depends(get_ai_scheduler),
    db: Session = Depends(get_db),
):
    """
    Ask the AI collaborator for a month proposal and merge it.

    Any failure leaves the store untouched and reports "no suggestion available".
    Runs in the threadpool: the Gemini call is blocking.
    """
    employees = store.list_employees()
    raw = ai.generate_schedule(employees, store.schedules(), payload.year, payload.month)
    if raw is None:
        return {"applied": False, "reason": NO_SUGGESTION, "updated": []}

    try:
        suggestions = parse_suggestions(raw)
    except SuggestionError as e:
        logger.warning("Rejected AI proposal: %s", e)
        return {"applied": False, "reason": NO_SUGGESTION, "updated": []}

    updated = store.merge_suggestions(suggestions, payload.year, payload.month)
    record_audit(
        db,
        current_user,
        "schedules",
        "update",
        f"AI proposal merged for {payload.month}/{payload.year}: {len(updated)} employees",
    )
    return {"applied": bool(updated), "updated": updated}


@router.post("/insights")
def schedule_insights(
    payload: MonthRequest,
    current_user: User = Depends(require_permission("reports.view")),
    store: ScheduleStore = Depends(get_store),
    ai: AIScheduler = Depends(get_ai_scheduler),
):
    """Short AI commentary on the month's workload distribution."""
    period = validate_month(payload.year, payload.month)
    data = {
        emp.name: {key: shift.type.value for key, shift in _filter_period(store.get_schedule(emp.id), period).shifts.items()}
        for emp in store.list_employees()
    }
    return {"insights": ai.analyze_insights(data)}


@router.get("/{employee_id}/calendar.ics")
async def export_calendar(
    employee_id: str,
    year: int = Query(...),
    month: int = Query(...),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Download an employee's booked slots for a month as iCal."""
    ensure_can_view_employee(current_user, employee_id)
    validate_month(year, month)
    try:
        employee = store.get_employee(employee_id)
        schedule = store.get_schedule(employee_id)
    except EmployeeNotFound as e:
        raise not_found(e)

    ical = generate_ical_for_month(employee, schedule, year, month)
    filename = f"escala_{employee_id}_{year}_{month:02d}.ics"
    return Response(
        content=ical,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
