# escala/routes/shared.py
"""
Shared dependencies and request/response schemas for route modules.
"""

import datetime

from fastapi import HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from escala.core.constants import ShiftType, Slot, UserRole
from escala.core.logging_config import get_logger
from escala.core.models import SlotConfig
from escala.core.store import EmployeeNotFound, ScheduleStore
from escala.database.database import AuditLog, User

logger = get_logger(__name__)


def get_store(request: Request) -> ScheduleStore:
    """Dependency returning the application's store (overridden in tests)."""
    return request.app.state.store


def not_found(error: EmployeeNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


def record_audit(db: Session, user: User | None, module: str, action: str, description: str = "") -> None:
    """Append an entry to the audit log."""
    entry = AuditLog(
        user_id=user.id if user else None,
        username=user.username if user else "system",
        module=module,
        action=action,
        description=description,
    )
    db.add(entry)
    db.commit()
    logger.info(
        "Audit: %s %s",
        module,
        action,
        extra={"extra_fields": {"module": module, "action": action, "username": entry.username}},
    )


# ============ Pydantic schemas ============


class LoginRequest(BaseModel):
    username: str
    password: str


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str | None = None
    name: str = Field(min_length=1)
    role: UserRole = UserRole.TEACHER
    employee_id: str | None = None
    email: str | None = None


class UserOut(BaseModel):
    id: int
    username: str
    name: str
    role: UserRole
    employee_id: str | None = None
    email: str | None = None

    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    name: str = Field(min_length=1)
    role: str = ""
    avatar_url: str = ""
    registration: str | None = None
    birth_date: str | None = None
    contract_expiration: str | None = None
    username: str | None = None
    email: str | None = None
    phone: str | None = None
    user_role: str | None = None
    skills: list[str] = Field(default_factory=list)
    qualifications: str | None = None


class EmployeeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    role: str | None = None
    avatar_url: str | None = None
    active: bool | None = None
    registration: str | None = None
    birth_date: str | None = None
    contract_expiration: str | None = None
    email: str | None = None
    phone: str | None = None
    skills: list[str] | None = None
    qualifications: str | None = None


class ShiftEditRequest(BaseModel):
    """One editor action: a shift type for a date plus per-slot bookings."""

    date: datetime.date
    type: ShiftType
    slots: dict[Slot, SlotConfig] = Field(default_factory=dict)


class MonthRequest(BaseModel):
    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)


class HourlyRateUpdate(BaseModel):
    hourly_rate: float = Field(ge=0)
