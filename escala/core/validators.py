from fastapi import HTTPException, status
from pydantic import ValidationError

from escala.core.models import Period


def validate_period(year: int, month: int | None = None) -> Period:
    """
    Build a Period from query parameters.

    - year + month: one calendar month.
    - year only: the whole year (aggregate mode).
    - Years outside 1..9999 or months outside 1..12 give HTTP 400.
    """
    try:
        return Period(year=year, month=month)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid period",
        )


def validate_month(year: int, month: int) -> Period:
    """Like validate_period but the month is mandatory."""
    return validate_period(year, month)
