#!/usr/bin/env python3
"""
Setup script: create login accounts for the employees of the seed file.

Usage:
    python create_users.py [seed_file]

This will:
1. Create the database tables if missing
2. Create an account per seed employee that has a username,
   linked to the employee and with the employee's user role
3. Create a separate admin account

Existing usernames are skipped, so the script can be run again safely.
Every new account gets DEFAULT_PASSWORD. Change it after the first login.
"""

import sys
from pathlib import Path

from escala.auth.auth import register_user
from escala.core.config import SEED_FILE
from escala.core.constants import DEFAULT_PASSWORD, UserRole
from escala.core.storage import load_seed
from escala.database.database import SessionLocal, create_tables

ADMIN_ACCOUNT = {"username": "admin", "name": "Administrador"}


def _role(value: str | None) -> UserRole:
    try:
        return UserRole(value or UserRole.TEACHER.value)
    except ValueError:
        print(f"   [WARNING] Unknown role {value!r}, using TEACHER")
        return UserRole.TEACHER


def create_users(seed_file: Path) -> int:
    """Create missing accounts; returns how many were created."""
    snapshot = load_seed(seed_file)
    employees = snapshot.employees if snapshot else []
    print(f"   [OK] Found {len(employees)} employees in {seed_file}")

    create_tables()
    db = SessionLocal()
    created = 0
    try:
        for emp in employees:
            if not emp.username:
                continue
            user = register_user(
                db,
                username=emp.username,
                password=DEFAULT_PASSWORD,
                name=emp.name,
                role=_role(emp.user_role),
                employee_id=emp.id,
                email=emp.email,
            )
            if user is False:
                print(f"   [SKIP] {emp.username} already exists")
                continue
            created += 1
            print(f"   [OK] {user.username} ({user.role.value}) -> employee {emp.id}")

        admin = register_user(
            db,
            username=ADMIN_ACCOUNT["username"],
            password=DEFAULT_PASSWORD,
            name=ADMIN_ACCOUNT["name"],
            role=UserRole.ADMIN,
        )
        if admin is False:
            print("   [SKIP] admin already exists")
        else:
            created += 1
            print("   [OK] admin (ADMIN)")
    finally:
        db.close()

    return created


if __name__ == "__main__":
    seed = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(SEED_FILE)
    print("\n" + "=" * 50)
    print("SETUP: seed employees -> user accounts")
    print("=" * 50 + "\n")
    count = create_users(seed)
    print(f"\nDone. {count} accounts created. Default password: {DEFAULT_PASSWORD}")
