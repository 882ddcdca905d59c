# escala/core/store.py
"""
In-memory store owning employees, schedules, deductions and the hourly rate.

One instance is created per application (or per test) and passed to the
code that needs it. Writers are serialized by a lock and always swap in
fully built structures, so a reader never sees a half-applied change.
"""

import datetime
import logging
import threading
from collections.abc import Mapping

from escala.core.config import DEFAULT_HOURLY_RATE
from escala.core.constants import ShiftType, Slot
from escala.core.models import (
    DeductionTable,
    Employee,
    HistoricalMonth,
    Schedule,
    SlotConfig,
    StoreSnapshot,
)
from escala.core.schedule import (
    ScheduleSuggestion,
    apply_shift_edit,
    apply_suggestions,
    fill_non_working_days,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base error for store operations."""

    pass


class EmployeeNotFound(StoreError):
    def __init__(self, employee_id: str):
        super().__init__(f"Employee {employee_id} not found")
        self.employee_id = employee_id


class ScheduleStore:
    """Single-writer owner of the scheduling state."""

    def __init__(self, snapshot: StoreSnapshot | None = None):
        self._lock = threading.RLock()
        self._employees: dict[str, Employee] = {}
        self._schedules: dict[str, Schedule] = {}
        self._deductions = DeductionTable()
        self._hourly_rate = DEFAULT_HOURLY_RATE
        self._history: list[HistoricalMonth] = []
        if snapshot is not None:
            self.load_snapshot(snapshot)

    # ---------- reads ----------

    @property
    def deductions(self) -> DeductionTable:
        return self._deductions

    @property
    def hourly_rate(self) -> float:
        return self._hourly_rate

    @property
    def history(self) -> list[HistoricalMonth]:
        return list(self._history)

    def list_employees(self, include_inactive: bool = False) -> list[Employee]:
        employees = list(self._employees.values())
        if include_inactive:
            return employees
        return [emp for emp in employees if emp.active]

    def get_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get(employee_id)
        if employee is None:
            raise EmployeeNotFound(employee_id)
        return employee

    def schedules(self) -> Mapping[str, Schedule]:
        """Current schedule per employee id (read-only view of one snapshot)."""
        return dict(self._schedules)

    def get_schedule(self, employee_id: str) -> Schedule:
        self.get_employee(employee_id)
        return self._schedules.get(employee_id) or Schedule(employee_id=employee_id)

    def next_employee_id(self) -> str:
        """Max numeric id + 1; non-numeric ids count as 0."""
        ids = [int(emp_id) if emp_id.isdigit() else 0 for emp_id in self._employees]
        return str(max(ids, default=0) + 1)

    # ---------- employees ----------

    def register_employee(self, employee: Employee) -> Employee:
        with self._lock:
            if not employee.id or employee.id in self._employees:
                employee = employee.model_copy(update={"id": self.next_employee_id()})
            employees = dict(self._employees)
            employees[employee.id] = employee
            self._employees = employees
        logger.info("Registered employee %s (%s)", employee.id, employee.name)
        return employee

    def update_employee(self, employee_id: str, changes: dict) -> Employee:
        """
        Apply field changes to an employee. The id never changes.

        Raises:
            EmployeeNotFound: If the id is unknown
            pydantic.ValidationError: If the changed employee is invalid
        """
        with self._lock:
            current = self.get_employee(employee_id)
            data = {**current.model_dump(), **changes, "id": employee_id}
            updated = Employee.model_validate(data)
            employees = dict(self._employees)
            employees[employee_id] = updated
            self._employees = employees
        return updated

    def deactivate_employee(self, employee_id: str, remove_schedule: bool = False) -> Employee:
        """Logical delete; optionally drop the employee's schedule rows."""
        with self._lock:
            updated = self.update_employee(employee_id, {"active": False})
            if remove_schedule and employee_id in self._schedules:
                schedules = dict(self._schedules)
                del schedules[employee_id]
                self._schedules = schedules
        logger.info("Deactivated employee %s (remove_schedule=%s)", employee_id, remove_schedule)
        return updated

    # ---------- schedules ----------

    def _put_schedules(self, replacements: Mapping[str, Schedule]) -> None:
        schedules = dict(self._schedules)
        schedules.update(replacements)
        self._schedules = schedules

    def save_schedule(self, schedule: Schedule) -> Schedule:
        """Explicit save: replace the employee's whole shift map."""
        with self._lock:
            self.get_employee(schedule.employee_id)
            self._put_schedules({schedule.employee_id: schedule})
        return schedule

    def apply_edit(
        self,
        employee_id: str,
        base_date: datetime.date,
        shift_type: ShiftType,
        slot_configs: Mapping[Slot, SlotConfig],
    ) -> Schedule:
        with self._lock:
            updated = apply_shift_edit(self.get_schedule(employee_id), base_date, shift_type, slot_configs)
            self._put_schedules({employee_id: updated})
        return updated

    def fill_non_working_days(self, year: int, month: int) -> None:
        """Pre-fill weekends and holidays of a month for every active employee."""
        with self._lock:
            replacements = {
                emp.id: fill_non_working_days(self.get_schedule(emp.id), year, month)
                for emp in self.list_employees()
            }
            self._put_schedules(replacements)

    def merge_suggestions(self, suggestions: list[ScheduleSuggestion], year: int, month: int) -> list[str]:
        """
        Merge validated proposals for active employees.

        Returns:
            Ids of employees whose schedules were replaced
        """
        with self._lock:
            replacements = apply_suggestions(self._schedules, self.list_employees(), suggestions, year, month)
            self._put_schedules(replacements)
        return list(replacements)

    # ---------- settings ----------

    def set_deductions(self, deductions: DeductionTable) -> DeductionTable:
        with self._lock:
            self._deductions = deductions.model_copy(deep=True)
        return self._deductions

    def set_hourly_rate(self, rate: float) -> float:
        if rate < 0:
            raise ValueError("Hourly rate must be non-negative")
        with self._lock:
            self._hourly_rate = float(rate)
        return self._hourly_rate

    # ---------- snapshots ----------

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                employees=list(self._employees.values()),
                schedules=list(self._schedules.values()),
                deductions=self._deductions.model_copy(deep=True),
                hourly_rate=self._hourly_rate,
                history=list(self._history),
                last_updated=datetime.datetime.now(datetime.timezone.utc),
            )

    def load_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Replace the whole state with a validated snapshot."""
        employees = {emp.id: emp for emp in snapshot.employees}
        schedules = {sch.employee_id: sch for sch in snapshot.schedules}
        with self._lock:
            self._employees = employees
            self._schedules = schedules
            self._deductions = snapshot.deductions.model_copy(deep=True)
            self._hourly_rate = snapshot.hourly_rate
            self._history = list(snapshot.history)
        logger.info(
            "Store loaded with %d employees and %d schedules",
            len(employees),
            len(schedules),
        )
