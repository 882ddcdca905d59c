"""Validation and merge of bulk schedule proposals (AI suggestions)."""

import calendar
import datetime
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from escala.core.constants import SLOT_ORDER, ShiftType
from escala.core.models import Employee, Schedule, Shift

logger = logging.getLogger(__name__)


class SuggestionError(Exception):
    """A proposal could not be validated; nothing should be merged."""

    pass


class SuggestedShift(BaseModel):
    day: int
    type: ShiftType


class ScheduleSuggestion(BaseModel):
    """Proposed shifts for one employee, matched by name or id."""

    model_config = ConfigDict(populate_by_name=True)

    employee_id: str | None = Field(default=None, alias="employeeId")
    employee_name: str | None = Field(default=None, alias="employeeName")
    shifts: list[SuggestedShift] = Field(default_factory=list)


def parse_suggestions(raw: Any) -> list[ScheduleSuggestion]:
    """
    Validate an untrusted proposal payload.

    Raises:
        SuggestionError: If the payload is not a list of valid suggestions
    """
    if not isinstance(raw, list):
        raise SuggestionError(f"Expected a list of suggestions, got {type(raw).__name__}")
    try:
        return [ScheduleSuggestion.model_validate(item) for item in raw]
    except ValidationError as e:
        raise SuggestionError(f"Malformed suggestion: {e}") from e


def _match(employee: Employee, suggestions: list[ScheduleSuggestion]) -> ScheduleSuggestion | None:
    by_name = next((s for s in suggestions if s.employee_name == employee.name), None)
    if by_name is not None:
        return by_name
    return next((s for s in suggestions if s.employee_id == employee.id), None)


def suggested_shift(date: datetime.date, shift_type: ShiftType) -> Shift:
    """Shift built from a proposal: OFF carries no slots, other types all three."""
    slots = [] if shift_type == ShiftType.OFF else list(SLOT_ORDER)
    return Shift(date=date, type=shift_type, active_slots=slots)


def apply_suggestions(
    schedules: Mapping[str, Schedule],
    employees: Iterable[Employee],
    suggestions: list[ScheduleSuggestion],
    year: int,
    month: int,
) -> dict[str, Schedule]:
    """
    Replacement schedules for every employee that has a proposal.

    Proposed days overwrite existing records of the same date; other dates
    are kept. Days outside the month and FINAL proposals are ignored.

    Returns:
        Dict employee_id -> new Schedule (employees without a proposal are absent)
    """
    days_in_month = calendar.monthrange(year, month)[1]
    replacements: dict[str, Schedule] = {}

    for employee in employees:
        suggestion = _match(employee, suggestions)
        if suggestion is None:
            continue

        current = schedules.get(employee.id)
        shifts = dict(current.shifts) if current is not None else {}
        for proposed in suggestion.shifts:
            if not 1 <= proposed.day <= days_in_month or proposed.type == ShiftType.FINAL:
                logger.debug("Ignoring proposal %s for %s", proposed, employee.name)
                continue
            date = datetime.date(year, month, proposed.day)
            shifts[date.isoformat()] = suggested_shift(date, proposed.type)

        replacements[employee.id] = Schedule(employee_id=employee.id, shifts=shifts)

    return replacements
