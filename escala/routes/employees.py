# escala/routes/employees.py
"""
Employee registration routes. Deletion is logical.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from escala.auth.auth import get_current_user, require_permission
from escala.core.helpers import ensure_can_view_employee, is_own_data_only
from escala.core.logging_config import get_logger
from escala.core.models import Employee
from escala.core.store import EmployeeNotFound, ScheduleStore
from escala.database.database import User, get_db
from escala.routes.shared import EmployeeCreate, EmployeeUpdate, get_store, not_found, record_audit

logger = get_logger(__name__)

router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.get("", response_model=list[Employee])
async def list_employees(
    include_inactive: bool = Query(False),
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    """Active employees; TEACHER accounts only see themselves."""
    employees = store.list_employees(include_inactive=include_inactive)
    if is_own_data_only(current_user):
        return [emp for emp in employees if emp.id == current_user.employee_id]
    return employees


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(
    employee_id: str,
    current_user: User = Depends(get_current_user),
    store: ScheduleStore = Depends(get_store),
):
    ensure_can_view_employee(current_user, employee_id)
    try:
        return store.get_employee(employee_id)
    except EmployeeNotFound as e:
        raise not_found(e)


@router.post("", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    current_user: User = Depends(require_permission("employees.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Register an employee with the next free numeric id."""
    employee = store.register_employee(Employee(id="", **payload.model_dump()))
    record_audit(db, current_user, "employees", "create", f"Registered {employee.name} ({employee.id})")
    return employee


@router.patch("/{employee_id}", response_model=Employee)
async def update_employee(
    employee_id: str,
    payload: EmployeeUpdate,
    current_user: User = Depends(require_permission("employees.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    try:
        employee = store.update_employee(employee_id, payload.model_dump(exclude_unset=True))
    except EmployeeNotFound as e:
        raise not_found(e)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"loc": err["loc"], "msg": err["msg"]} for err in e.errors()],
        )
    record_audit(db, current_user, "employees", "update", f"Updated {employee.name} ({employee.id})")
    return employee


@router.delete("/{employee_id}", response_model=Employee)
async def delete_employee(
    employee_id: str,
    remove_schedule: bool = Query(False),
    current_user: User = Depends(require_permission("employees.edit")),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Deactivate an employee, optionally dropping their schedule."""
    try:
        employee = store.deactivate_employee(employee_id, remove_schedule=remove_schedule)
    except EmployeeNotFound as e:
        raise not_found(e)
    record_audit(
        db,
        current_user,
        "employees",
        "delete",
        f"Deactivated {employee.name} ({employee.id}), schedule removed: {remove_schedule}",
    )
    return employee
