import datetime
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from escala.core.config import DEFAULT_HOURLY_RATE
from escala.core.constants import SLOT_ORDER, Bucket, ShiftType, Slot
from escala.core.holidays import month_dates


class Employee(BaseModel):
    """Registered staff member. Deletion is logical (active=False)."""

    id: str
    name: str
    role: str = ""
    avatar_url: str = ""
    active: bool = True
    registration: str | None = None
    birth_date: str | None = None
    contract_expiration: str | None = None
    username: str | None = None
    email: str | None = None
    phone: str | None = None
    user_role: str | None = None
    skills: list[str] = Field(default_factory=list)
    qualifications: str | None = None


class SlotDetail(BaseModel):
    """Per-slot booking metadata on a shift."""

    course_name: str = ""
    school_name: str = ""
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    total_hours: float = 0
    is_cancelled: bool = False


class Shift(BaseModel):
    """One employee's assignment on one date."""

    date: datetime.date
    type: ShiftType
    active_slots: list[Slot] = Field(default_factory=list)
    slot_details: dict[Slot, SlotDetail] = Field(default_factory=dict)
    course_name: str = ""
    notes: str | None = None

    @field_validator("active_slots")
    @classmethod
    def _normalize_slots(cls, value: list[Slot]) -> list[Slot]:
        present = set(value)
        return [slot for slot in SLOT_ORDER if slot in present]

    @model_validator(mode="after")
    def _off_has_no_slots(self) -> "Shift":
        if self.type == ShiftType.OFF and (self.active_slots or self.slot_details):
            self.active_slots = []
            self.slot_details = {}
        return self

    def is_slot_cancelled(self, slot: Slot) -> bool:
        detail = self.slot_details.get(slot)
        return bool(detail and detail.is_cancelled)


class Schedule(BaseModel):
    """All shifts of one employee, keyed by ISO date string."""

    employee_id: str
    shifts: dict[str, Shift] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_dates(self) -> "Schedule":
        for key, shift in self.shifts.items():
            if key != shift.date.isoformat():
                raise ValueError(f"Shift key {key!r} does not match its date {shift.date.isoformat()}")
        return self

    def shift_on(self, date: datetime.date) -> Shift | None:
        return self.shifts.get(date.isoformat())


class BucketDeductions(BaseModel):
    """Monthly deductions for one bucket. Amounts in R$, never negative."""

    ir: float = Field(default=0, ge=0)
    inss: float = Field(default=0, ge=0)
    unimed: float = Field(default=0, ge=0)

    @property
    def total(self) -> float:
        return self.ir + self.inss + self.unimed


class DeductionTable(BaseModel):
    """Deductions per bucket, shared by the calendar and reports views."""

    model_config = ConfigDict(populate_by_name=True)

    h40: BucketDeductions = Field(default_factory=BucketDeductions, alias="40H")
    h20: BucketDeductions = Field(default_factory=BucketDeductions, alias="20H")

    def for_bucket(self, bucket: Bucket) -> BucketDeductions:
        return self.h40 if bucket == Bucket.H40 else self.h20

    def total(self, bucket: Bucket) -> float:
        return self.for_bucket(bucket).total


class Period(BaseModel):
    """A calendar month, or a whole year when month is None."""

    year: int = Field(ge=1, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)

    def months(self) -> list[int]:
        return [self.month] if self.month is not None else list(range(1, 13))

    def days(self) -> Iterator[datetime.date]:
        for month in self.months():
            yield from month_dates(self.year, month)


class SlotConfig(BaseModel):
    """Editor input for one slot of a shift edit.

    `clear` removes the slot from the base date when it is not active.
    """

    active: bool = False
    course_name: str = ""
    school_name: str = ""
    start_date: datetime.date | None = None
    total_hours: float = Field(default=0, ge=0)
    is_cancelled: bool = False
    clear: bool = False


class HistoricalMonth(BaseModel):
    """Consolidated figures for a month without live shifts (forecast rows)."""

    year: int | None = None
    month: int = Field(ge=1, le=12)
    label: str = ""
    gross_40h: float = 0
    gross_20h: float = 0
    net: float = 0
    deductions: float = 0
    unimed: float = 0


class StoreSnapshot(BaseModel):
    """Serializable image of the whole store (export/import and seed file)."""

    employees: list[Employee] = Field(default_factory=list)
    schedules: list[Schedule] = Field(default_factory=list)
    deductions: DeductionTable = Field(default_factory=DeductionTable)
    hourly_rate: float = Field(default=DEFAULT_HOURLY_RATE, ge=0)
    history: list[HistoricalMonth] = Field(default_factory=list)
    last_updated: datetime.datetime | None = None
