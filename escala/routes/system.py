# escala/routes/system.py
"""
System routes: deduction table, hourly rate, snapshot export/import, audit log.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from escala.auth.auth import get_admin_user, require_permission
from escala.core.logging_config import get_logger
from escala.core.models import DeductionTable
from escala.core.storage import StorageError, parse_snapshot
from escala.core.store import ScheduleStore
from escala.database.database import AuditLog, User, get_db
from escala.routes.shared import HourlyRateUpdate, get_store, record_audit

logger = get_logger(__name__)

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/deductions")
async def get_deductions(
    current_user: User = Depends(require_permission("reports.view")),
    store: ScheduleStore = Depends(get_store),
):
    return store.deductions.model_dump(by_alias=True)


@router.put("/deductions")
async def update_deductions(
    deductions: DeductionTable,
    current_user: User = Depends(get_admin_user),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Replace the deduction table. Negative amounts are rejected with 422."""
    saved = store.set_deductions(deductions)
    record_audit(
        db,
        current_user,
        "system",
        "settings",
        f"Deductions updated: 40H={saved.h40.total:.2f}, 20H={saved.h20.total:.2f}",
    )
    return saved.model_dump(by_alias=True)


@router.get("/hourly-rate")
async def get_hourly_rate(
    current_user: User = Depends(require_permission("reports.view")),
    store: ScheduleStore = Depends(get_store),
):
    return {"hourly_rate": store.hourly_rate}


@router.put("/hourly-rate")
async def update_hourly_rate(
    payload: HourlyRateUpdate,
    current_user: User = Depends(get_admin_user),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    rate = store.set_hourly_rate(payload.hourly_rate)
    record_audit(db, current_user, "system", "settings", f"Hourly rate set to {rate:.2f}")
    return {"hourly_rate": rate}


@router.get("/export")
async def export_snapshot(
    current_user: User = Depends(get_admin_user),
    store: ScheduleStore = Depends(get_store),
):
    """Download the whole store as a JSON snapshot."""
    snapshot = store.snapshot()
    stamp = snapshot.last_updated.strftime("%Y%m%d") if snapshot.last_updated else "snapshot"
    return JSONResponse(
        content=snapshot.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="escala_backup_{stamp}.json"'},
    )


@router.post("/import")
async def import_snapshot(
    data: Any = Body(...),
    current_user: User = Depends(get_admin_user),
    store: ScheduleStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Replace the whole store with an uploaded snapshot. Invalid input changes nothing."""
    try:
        snapshot = parse_snapshot(data, source="upload")
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    store.load_snapshot(snapshot)
    record_audit(
        db,
        current_user,
        "system",
        "settings",
        f"Snapshot imported: {len(snapshot.employees)} employees, {len(snapshot.schedules)} schedules",
    )
    return {"imported": True, "employees": len(snapshot.employees), "schedules": len(snapshot.schedules)}


@router.get("/audit-log")
async def audit_log(
    limit: int = Query(100, ge=1, le=1000),
    module: str | None = Query(None),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Most recent audit entries first."""
    query = db.query(AuditLog)
    if module:
        query = query.filter(AuditLog.module == module)
    entries = query.order_by(AuditLog.id.desc()).limit(limit).all()
    return [
        {
            "id": entry.id,
            "timestamp": entry.timestamp.isoformat() if entry.timestamp else None,
            "username": entry.username,
            "module": entry.module,
            "action": entry.action,
            "description": entry.description,
        }
        for entry in entries
    ]
