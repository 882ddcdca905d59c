# escala/core/constants.py
import enum
from typing import Final


# ==========================
# Shift types
# ==========================


class ShiftType(str, enum.Enum):
    """Kind of assignment recorded for an employee on a date."""

    T1 = "T1"  # Técnico
    Q1 = "Q1"  # Qualificação
    PLAN = "PLAN"  # Planejamento
    FINAL = "FINAL"  # Weekend/holiday marker, never paid
    OFF = "OFF"  # Folga


#: Shift types whose active slots generate paid hours.
BILLABLE_SHIFT_TYPES: Final[frozenset[ShiftType]] = frozenset({ShiftType.T1, ShiftType.Q1, ShiftType.PLAN})

#: Billable types in display order, used for the per-type hour breakdown.
BILLABLE_SHIFT_ORDER: Final[tuple[ShiftType, ...]] = (ShiftType.T1, ShiftType.Q1, ShiftType.PLAN)


# ==========================
# Slots and buckets
# ==========================


class Slot(str, enum.Enum):
    """One of the three fixed 4-hour daily windows."""

    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    NIGHT = "NIGHT"


class Bucket(str, enum.Enum):
    """Payroll aggregation group, independent of the employee's contract."""

    H40 = "40H"
    H20 = "20H"


#: Canonical slot order. Shift.active_slots is always kept in this order.
SLOT_ORDER: Final[tuple[Slot, ...]] = (Slot.MORNING, Slot.AFTERNOON, Slot.NIGHT)

#: Which bucket each slot's hours accumulate into.
SLOT_BUCKET: Final[dict[Slot, Bucket]] = {
    Slot.MORNING: Bucket.H40,
    Slot.AFTERNOON: Bucket.H40,
    Slot.NIGHT: Bucket.H20,
}

#: Short code, label and clock times of each slot (presentation and iCal export).
SLOT_INFO: Final[dict[Slot, dict[str, str]]] = {
    Slot.MORNING: {"id": "M", "label": "Manhã", "start": "07:30", "end": "11:30"},
    Slot.AFTERNOON: {"id": "T", "label": "Tarde", "start": "13:30", "end": "17:30"},
    Slot.NIGHT: {"id": "N", "label": "Noite", "start": "18:30", "end": "22:30"},
}

#: Theoretical capacity of one working day (3 slots x 4h).
DAILY_CAPACITY_HOURS: Final[int] = 12


# ==========================
# Calendar
# ==========================

#: Fixed national and Porto Velho municipal holidays as MM-DD.
#: No year dependency and no moving holidays.
PORTO_VELHO_HOLIDAYS: Final[frozenset[str]] = frozenset(
    {
        "01-01",  # Confraternização Universal
        "01-04",  # Criação do Estado de Rondônia
        "01-24",  # Aniversário de Porto Velho
        "04-21",  # Tiradentes
        "05-01",  # Dia do Trabalho
        "09-07",  # Independência
        "10-02",  # Padroeira de Porto Velho
        "10-12",  # Nossa Senhora Aparecida
        "11-02",  # Finados
        "11-15",  # Proclamação da República
        "12-25",  # Natal
    }
)

#: Course label stamped on the FINAL records that pre-fill non-working days.
NON_WORKING_DAY_LABEL: Final[str] = "Fim de Semana"


# ==========================
# Idleness audit
# ==========================


class IdlenessStatus(str, enum.Enum):
    HIGH = "HIGH"
    ATTENTION = "ATTENTION"
    EFFICIENT = "EFFICIENT"


#: Portuguese labels shown next to the audit bands.
IDLENESS_LABELS: Final[dict[IdlenessStatus, str]] = {
    IdlenessStatus.HIGH: "Alta ociosidade",
    IdlenessStatus.ATTENTION: "Atenção",
    IdlenessStatus.EFFICIENT: "Eficiente",
}


# ==========================
# Users and permissions
# ==========================


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    COORDINATOR = "COORDINATOR"
    SUPERVISOR = "SUPERVISOR"


#: Capabilities granted per role. TEACHER users only ever see their own data.
ROLE_PERMISSIONS: Final[dict[UserRole, frozenset[str]]] = {
    UserRole.ADMIN: frozenset(
        {"employees.view", "employees.edit", "schedules.view", "schedules.edit", "reports.view", "system.admin"}
    ),
    UserRole.COORDINATOR: frozenset(
        {"employees.view", "employees.edit", "schedules.view", "schedules.edit", "reports.view"}
    ),
    UserRole.SUPERVISOR: frozenset({"employees.view", "schedules.view", "schedules.edit", "reports.view"}),
    UserRole.TEACHER: frozenset({"schedules.view"}),
}

#: Password given to accounts created without an explicit one.
#: Change in production.
DEFAULT_PASSWORD: Final[str] = "123"
