import calendar
import datetime

from escala.core.constants import PORTO_VELHO_HOLIDAYS


def holiday_key(date: datetime.date) -> str:
    """MM-DD key used by the fixed holiday list."""
    return f"{date.month:02d}-{date.day:02d}"


def is_holiday(date: datetime.date) -> bool:
    """Fixed national/municipal holiday, same date every year."""
    return holiday_key(date) in PORTO_VELHO_HOLIDAYS


def is_weekend(date: datetime.date) -> bool:
    return date.weekday() >= 5  # 5–6 = Saturday/Sunday


def is_non_working_day(date: datetime.date) -> bool:
    """Saturday, Sunday or a fixed holiday."""
    return is_weekend(date) or is_holiday(date)


def is_working_day(date: datetime.date) -> bool:
    return not is_non_working_day(date)


def month_dates(year: int, month: int) -> list[datetime.date]:
    """Every calendar date of a month."""
    days_in_month = calendar.monthrange(year, month)[1]
    return [datetime.date(year, month, day) for day in range(1, days_in_month + 1)]


def working_days(year: int, month: int) -> list[datetime.date]:
    """Monday–Friday dates of a month that are not holidays."""
    return [d for d in month_dates(year, month) if is_working_day(d)]


def holidays_in_month(month: int) -> list[str]:
    """Holidays of a month as DD/MM strings (prompt and display helper)."""
    prefix = f"{month:02d}-"
    return [f"{key[3:]}/{key[:2]}" for key in sorted(PORTO_VELHO_HOLIDAYS) if key.startswith(prefix)]
