"""
Schedule module - slot bookings, payroll aggregation and idleness audit.

Exports the public core API.
"""

from .assignment import apply_shift_edit, fill_non_working_days
from .expansion import booking_end_date, days_needed, expand_working_dates
from .idleness import IdlenessThresholds, audit_employee, audit_idleness, classify_idleness
from .payroll import (
    MONTH_LABELS,
    DayEvaluation,
    aggregate,
    annual_summary,
    calendar_totals,
    evaluate_day,
    summarize_employee,
)
from .suggestions import (
    ScheduleSuggestion,
    SuggestedShift,
    SuggestionError,
    apply_suggestions,
    parse_suggestions,
    suggested_shift,
)

__all__ = [
    # expansion
    "expand_working_dates",
    "booking_end_date",
    "days_needed",
    # assignment
    "apply_shift_edit",
    "fill_non_working_days",
    # payroll
    "evaluate_day",
    "DayEvaluation",
    "summarize_employee",
    "aggregate",
    "calendar_totals",
    "annual_summary",
    "MONTH_LABELS",
    # idleness
    "IdlenessThresholds",
    "classify_idleness",
    "audit_employee",
    "audit_idleness",
    # suggestions
    "ScheduleSuggestion",
    "SuggestedShift",
    "SuggestionError",
    "parse_suggestions",
    "apply_suggestions",
    "suggested_shift",
]
