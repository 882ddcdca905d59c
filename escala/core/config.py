# escala/core/config.py

import os
from typing import Final


# ==========================
# Dates and times
# ==========================

#: Format for slot clock times ("07:30").
TIME_FORMAT_HM: Final[str] = "%H:%M"

#: Timezone used when exporting bookings to calendars.
LOCAL_TIMEZONE: Final[str] = "America/Porto_Velho"


# ==========================
# Slot expansion
# ==========================

#: Hours one slot covers on a single day. A booking of N hours occupies
#: ceil(N / SLOT_CAPACITY_HOURS) working days.
SLOT_CAPACITY_HOURS: Final[int] = 4

#: Upper bound on calendar days walked when expanding a booking.
#: Bookings that cannot be placed within this window are truncated.
EXPANSION_SAFETY_BOUND_DAYS: Final[int] = 365


# ==========================
# Payroll
# ==========================

#: Hourly rate (R$) used when nothing else is configured.
DEFAULT_HOURLY_RATE: Final[float] = 32.00

#: Idle fraction above which an employee is flagged as highly idle.
IDLENESS_HIGH_THRESHOLD: Final[float] = 0.60

#: Idle fraction above which an employee needs attention.
IDLENESS_ATTENTION_THRESHOLD: Final[float] = 0.30


# ==========================
# Runtime (environment)
# ==========================

IS_PRODUCTION: Final[bool] = os.getenv("PRODUCTION", "false").lower() == "true"

#: SQLAlchemy URL for the user/audit database.
DATABASE_URL: Final[str] = os.getenv("DATABASE_URL", "sqlite:///./escala.db")

#: Optional JSON snapshot loaded into the store at startup.
SEED_FILE: Final[str] = os.getenv("ESCALA_SEED_FILE", "data/seed.json")

#: Where the store is written on shutdown and reloaded on startup. Empty disables it.
SNAPSHOT_FILE: Final[str] = os.getenv("ESCALA_SNAPSHOT_FILE", "")

#: Version reported by /health and Sentry releases.
APP_VERSION: Final[str] = "0.3.0"
