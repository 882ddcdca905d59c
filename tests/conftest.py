"""
Pytest configuration and shared fixtures for testing.

Provides reusable test fixtures:
- test_db: In-memory SQLite database for isolated testing
- store: ScheduleStore with three employees and no shifts
- test_client: FastAPI TestClient with database and store overrides
- admin_user / coordinator_user / supervisor_user / teacher_user: accounts per role
- *_headers: Bearer headers for those accounts
"""

import os
import sys
from pathlib import Path

import pytest

# Keep test runs away from the real database and log files
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ESCALA_LOG_TO_FILE", "false")

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from escala.auth.auth import create_access_token, get_password_hash
from escala.core.constants import UserRole
from escala.core.models import Employee
from escala.core.store import ScheduleStore
from escala.database.database import Base, User, get_db
from escala.main import app
from escala.routes.shared import get_store


@pytest.fixture(scope="function")
def test_db():
    """
    Create an in-memory SQLite database for testing.

    StaticPool keeps one connection so the TestClient's worker thread
    sees the same database as the fixtures.

    Yields:
        SQLAlchemy Session: Database session for test use
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def employees():
    return [
        Employee(id="1", name="Ana Silva", role="Engenheira Sênior", user_role="TEACHER"),
        Employee(id="2", name="Carlos Mendes", role="Técnico Líder", user_role="COORDINATOR"),
        Employee(id="3", name="Marina Costa", role="Analista de Dados", user_role="SUPERVISOR"),
    ]


@pytest.fixture(scope="function")
def store(employees):
    """Fresh store per test: three employees, no shifts, default rate."""
    store = ScheduleStore()
    for employee in employees:
        store.register_employee(employee)
    return store


@pytest.fixture(scope="function")
def test_client(test_db, store):
    """
    FastAPI TestClient using the test database and the test store.

    Yields:
        TestClient: FastAPI test client for API testing
    """

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def _make_user(db, user_id: int, username: str, password: str, role: UserRole, employee_id: str | None = None) -> User:
    user = User(
        id=user_id,
        username=username,
        password_hash=get_password_hash(password),
        name=username.title(),
        role=role,
        employee_id=employee_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(test_db):
    """Admin account: admin / adminpass123."""
    return _make_user(test_db, 1, "admin", "adminpass123", UserRole.ADMIN)


@pytest.fixture(scope="function")
def coordinator_user(test_db):
    return _make_user(test_db, 2, "carlos", "coordpass123", UserRole.COORDINATOR, employee_id="2")


@pytest.fixture(scope="function")
def supervisor_user(test_db):
    return _make_user(test_db, 3, "marina", "superpass123", UserRole.SUPERVISOR, employee_id="3")


@pytest.fixture(scope="function")
def teacher_user(test_db):
    """Teacher account linked to employee 1: ana / teachpass123."""
    return _make_user(test_db, 4, "ana", "teachpass123", UserRole.TEACHER, employee_id="1")


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture(scope="function")
def coordinator_headers(coordinator_user):
    return _headers(coordinator_user)


@pytest.fixture(scope="function")
def supervisor_headers(supervisor_user):
    return _headers(supervisor_user)


@pytest.fixture(scope="function")
def teacher_headers(teacher_user):
    return _headers(teacher_user)
