# escala/main.py
"""
FastAPI application entry point.
"""

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from escala.core.config import APP_VERSION, IS_PRODUCTION, SEED_FILE, SNAPSHOT_FILE
from escala.core.logging_config import get_logger, setup_logging
from escala.core.request_logging import RequestLoggingMiddleware
from escala.core.sentry_config import init_sentry
from escala.core.storage import load_seed, save_snapshot
from escala.core.store import ScheduleStore
from escala.database.database import create_tables, get_db
from escala.routes.auth_routes import router as auth_router
from escala.routes.employees import router as employees_router
from escala.routes.reports import router as reports_router
from escala.routes.schedules import router as schedules_router
from escala.routes.system import router as system_router

# Setup logging FIRST (before any other imports that might log)
setup_logging(log_to_file=os.getenv("ESCALA_LOG_TO_FILE", "true").lower() == "true")
logger = get_logger(__name__)

sentry_enabled = init_sentry()


def create_store(seed_file: str = SEED_FILE, snapshot_file: str = SNAPSHOT_FILE) -> ScheduleStore:
    """Store for this process: the last saved snapshot if any, else the seed file."""
    snapshot = load_seed(Path(snapshot_file)) if snapshot_file else None
    if snapshot is None:
        snapshot = load_seed(Path(seed_file))
    return ScheduleStore(snapshot)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Application starting up",
        extra={"extra_fields": {"production": IS_PRODUCTION, "python_version": sys.version}},
    )

    try:
        create_tables()
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}", exc_info=True)
        raise

    if getattr(app.state, "store", None) is None:
        app.state.store = create_store()

    yield

    if SNAPSHOT_FILE:
        save_snapshot(Path(SNAPSHOT_FILE), app.state.store.snapshot())
    logger.info("Application shutting down")


app = FastAPI(
    title="Escala",
    description="Teaching staff slot scheduling, payroll and idleness reports",
    version=APP_VERSION,
    lifespan=lifespan,
)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]

if IS_PRODUCTION:
    if not CORS_ORIGINS:
        logger.warning(
            "Production mode but no CORS_ORIGINS set. CORS will block all cross-origin requests."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    logger.info(f"CORS configured for production with origins: {CORS_ORIGINS}")
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    logger.info("CORS configured for development (permissive)")

app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(employees_router)
app.include_router(schedules_router)
app.include_router(reports_router)
app.include_router(system_router)


@app.get("/health", tags=["health"])
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns 503 when the database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed - database connection error: {e}", exc_info=True)
        raise HTTPException(
            status_code=503,
            detail={"status": "unhealthy", "service": "escala", "database": "disconnected"},
        ) from e

    return {
        "status": "healthy",
        "service": "escala",
        "version": APP_VERSION,
        "database": "connected",
    }
