# escala/core/helpers.py
"""
Shared helper functions for route handlers: data visibility per role.
"""

from fastapi import HTTPException, status

from escala.core.constants import ROLE_PERMISSIONS, UserRole
from escala.core.types import PayrollReport
from escala.database.database import User

# Money fields hidden from users who may not see salary data
SALARY_FIELDS = ("gross_40h", "gross_20h", "gross_value", "lost_value")
SALARY_TOTAL_FIELDS = SALARY_FIELDS + (
    "net_40h",
    "net_20h",
    "net_value",
    "ir",
    "inss",
    "unimed",
    "total_deductions",
)


def is_own_data_only(user: User) -> bool:
    """TEACHER accounts are restricted to the employee they are linked to."""
    return user.role == UserRole.TEACHER


def can_view_employee(user: User, employee_id: str) -> bool:
    """
    Check if a user may read schedule or report data of an employee.

    Rules:
    - TEACHER: only the linked employee
    - Other roles: anyone, if they hold schedules.view
    """
    if is_own_data_only(user):
        return user.employee_id is not None and user.employee_id == employee_id
    return "schedules.view" in ROLE_PERMISSIONS.get(user.role, frozenset())


def ensure_can_view_employee(user: User, employee_id: str) -> None:
    if not can_view_employee(user, employee_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this employee")


def can_see_salary(user: User, employee_id: str | None = None) -> bool:
    """
    Check if a user can see money values.

    Rules:
    - reports.view: full access
    - TEACHER: only own data
    """
    if "reports.view" in ROLE_PERMISSIONS.get(user.role, frozenset()):
        return True
    return employee_id is not None and user.employee_id == employee_id


def strip_salary_data(report: PayrollReport) -> PayrollReport:
    """Copy of a payroll report with every money value set to None."""
    rows = []
    for row in report["per_employee"]:
        stripped = dict(row)
        for field in SALARY_FIELDS:
            stripped[field] = None
        rows.append(stripped)

    totals = dict(report["totals"])
    for field in SALARY_TOTAL_FIELDS:
        totals[field] = None

    result = dict(report)
    result["hourly_rate"] = None
    result["per_employee"] = rows
    result["totals"] = totals
    return result
