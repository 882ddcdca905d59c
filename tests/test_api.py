"""
Integration tests for FastAPI endpoints.

Tests verify authentication flow, role-based access and API responses.
"""

import asyncio

from escala.routes.schedules import get_ai_scheduler
from escala.main import app


class TestPublicRoutes:
    def test_health_endpoint_returns_ok(self, test_client):
        """GET /health should return 200 OK for monitoring."""
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "escala"

    def test_request_id_header(self, test_client):
        response = test_client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestAuthenticationFlow:
    def test_login_with_valid_credentials(self, test_client, admin_user):
        """POST /api/auth/login should return a token and set the auth cookie."""
        response = test_client.post("/api/auth/login", json={"username": "admin", "password": "adminpass123"})

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert response.json()["user"]["role"] == "ADMIN"
        assert "access_token" in response.cookies

    def test_login_with_invalid_password(self, test_client, admin_user):
        response = test_client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
        assert response.status_code == 401

    def test_login_with_nonexistent_user(self, test_client, admin_user):
        response = test_client.post("/api/auth/login", json={"username": "nobody", "password": "x"})
        assert response.status_code == 401

    def test_cookie_session_reaches_me(self, test_client, teacher_user):
        test_client.post("/api/auth/login", json={"username": "ana", "password": "teachpass123"})

        response = test_client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["employee_id"] == "1"

    def test_logout_clears_cookie(self, test_client, teacher_user):
        test_client.post("/api/auth/login", json={"username": "ana", "password": "teachpass123"})
        response = test_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert test_client.get("/api/auth/me").status_code == 401

    def test_me_requires_authentication(self, test_client):
        assert test_client.get("/api/auth/me").status_code == 401

    def test_invalid_token_is_rejected(self, test_client):
        response = test_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestRegistration:
    def test_admin_registers_user(self, test_client, admin_headers):
        response = test_client.post(
            "/api/auth/register",
            json={"username": "joao", "name": "João Santos", "role": "TEACHER", "employee_id": "4"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["username"] == "joao"
        login = test_client.post("/api/auth/login", json={"username": "joao", "password": "123"})
        assert login.status_code == 200

    def test_duplicate_username_is_conflict(self, test_client, admin_headers, teacher_user):
        response = test_client.post(
            "/api/auth/register",
            json={"username": "ana", "password": "x", "name": "Ana"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_non_admin_cannot_register(self, test_client, coordinator_headers):
        response = test_client.post(
            "/api/auth/register",
            json={"username": "x", "password": "x", "name": "X"},
            headers=coordinator_headers,
        )
        assert response.status_code == 403


class TestEmployees:
    def test_list_employees(self, test_client, coordinator_headers):
        response = test_client.get("/api/employees", headers=coordinator_headers)
        assert [emp["id"] for emp in response.json()] == ["1", "2", "3"]

    def test_teacher_sees_only_self(self, test_client, teacher_headers):
        response = test_client.get("/api/employees", headers=teacher_headers)
        assert [emp["id"] for emp in response.json()] == ["1"]
        assert test_client.get("/api/employees/2", headers=teacher_headers).status_code == 403

    def test_create_update_delete(self, test_client, coordinator_headers, store):
        created = test_client.post("/api/employees", json={"name": "João Santos"}, headers=coordinator_headers)
        assert created.status_code == 201
        assert created.json()["id"] == "4"

        updated = test_client.patch("/api/employees/4", json={"role": "Operador T1"}, headers=coordinator_headers)
        assert updated.json()["role"] == "Operador T1"

        deleted = test_client.delete("/api/employees/4", headers=coordinator_headers)
        assert deleted.json()["active"] is False
        assert [emp.id for emp in store.list_employees()] == ["1", "2", "3"]

    def test_supervisor_cannot_edit_employees(self, test_client, supervisor_headers):
        response = test_client.post("/api/employees", json={"name": "X"}, headers=supervisor_headers)
        assert response.status_code == 403

    def test_null_fields_are_rejected(self, test_client, coordinator_headers, store):
        """Explicit nulls cannot blank a required field or bypass the logical delete."""
        for body in ({"name": None}, {"active": None}):
            response = test_client.patch("/api/employees/1", json=body, headers=coordinator_headers)
            assert response.status_code == 422

        assert store.get_employee("1").name == "Ana Silva"
        assert [emp.id for emp in store.list_employees()] == ["1", "2", "3"]

    def test_unknown_employee_is_404(self, test_client, coordinator_headers):
        assert test_client.get("/api/employees/99", headers=coordinator_headers).status_code == 404
        assert test_client.patch("/api/employees/99", json={}, headers=coordinator_headers).status_code == 404


class TestSchedules:
    def _edit(self, client, headers, employee_id="1", **body):
        payload = {
            "date": "2025-03-10",
            "type": "T1",
            "slots": {"MORNING": {"active": True, "course_name": "NR-10", "total_hours": 12}},
        }
        payload.update(body)
        return client.post(f"/api/schedules/{employee_id}/edit", json=payload, headers=headers)

    def test_edit_expands_booking(self, test_client, supervisor_headers):
        response = self._edit(test_client, supervisor_headers)

        assert response.status_code == 200
        assert sorted(response.json()["shifts"]) == ["2025-03-10", "2025-03-11", "2025-03-12"]

    def test_month_view_with_totals(self, test_client, supervisor_headers):
        self._edit(test_client, supervisor_headers)

        response = test_client.get("/api/schedules?year=2025&month=3", headers=supervisor_headers)

        data = response.json()
        assert len(data["schedules"]) == 3
        assert data["totals"]["hours_40h"] == 12
        assert data["totals"]["gross_value"] == 384.0

    def test_teacher_cannot_edit(self, test_client, teacher_headers):
        assert self._edit(test_client, teacher_headers).status_code == 403

    def test_teacher_reads_own_schedule_only(self, test_client, supervisor_headers, teacher_headers):
        self._edit(test_client, supervisor_headers)
        assert test_client.get("/api/schedules/1", headers=teacher_headers).status_code == 200
        assert test_client.get("/api/schedules/2", headers=teacher_headers).status_code == 403

    def test_edit_unknown_employee_is_404(self, test_client, supervisor_headers):
        assert self._edit(test_client, supervisor_headers, employee_id="99").status_code == 404

    def test_invalid_month_is_400(self, test_client, supervisor_headers):
        response = test_client.get("/api/schedules?year=2025&month=13", headers=supervisor_headers)
        assert response.status_code == 400

    def test_save_replaces_map(self, test_client, supervisor_headers, store):
        self._edit(test_client, supervisor_headers)
        body = {"employee_id": "1", "shifts": {"2025-03-20": {"date": "2025-03-20", "type": "PLAN", "active_slots": ["NIGHT"]}}}

        response = test_client.put("/api/schedules/1", json=body, headers=supervisor_headers)

        assert response.status_code == 200
        assert list(store.get_schedule("1").shifts) == ["2025-03-20"]

    def test_save_with_key_not_matching_date_is_422(self, test_client, supervisor_headers, store):
        body = {
            "employee_id": "1",
            "shifts": {"2025-03-10": {"date": "2025-03-15", "type": "T1", "active_slots": ["MORNING", "AFTERNOON", "NIGHT"]}},
        }

        response = test_client.put("/api/schedules/1", json=body, headers=supervisor_headers)

        assert response.status_code == 422
        assert store.get_schedule("1").shifts == {}

    def test_save_with_mismatched_id_is_400(self, test_client, supervisor_headers):
        body = {"employee_id": "2", "shifts": {}}
        assert test_client.put("/api/schedules/1", json=body, headers=supervisor_headers).status_code == 400

    def test_fill_non_working(self, test_client, supervisor_headers, store):
        response = test_client.post(
            "/api/schedules/fill-non-working", json={"year": 2025, "month": 3}, headers=supervisor_headers
        )
        assert response.status_code == 200
        assert store.get_schedule("2").shifts["2025-03-15"].type.value == "FINAL"

    def test_calendar_export(self, test_client, supervisor_headers):
        self._edit(test_client, supervisor_headers)

        response = test_client.get("/api/schedules/1/calendar.ics?year=2025&month=3", headers=supervisor_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert response.text.count("BEGIN:VEVENT") == 3


class FakeScheduler:
    def __init__(self, raw):
        self.raw = raw
        self.ran_on_event_loop = None

    def _note_loop(self):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.ran_on_event_loop = False
        else:
            self.ran_on_event_loop = True

    def generate_schedule(self, employees, schedules, year, month):
        self._note_loop()
        return self.raw

    def analyze_insights(self, data):
        self._note_loop()
        return "ok"


class TestSuggestions:
    def _suggest(self, client, headers, raw):
        app.dependency_overrides[get_ai_scheduler] = lambda: FakeScheduler(raw)
        return client.post("/api/schedules/suggest", json={"year": 2025, "month": 11}, headers=headers)

    def test_valid_proposal_is_merged(self, test_client, coordinator_headers, store):
        response = self._suggest(
            test_client,
            coordinator_headers,
            [{"employeeName": "Ana Silva", "shifts": [{"day": 3, "type": "Q1"}]}],
        )

        assert response.json() == {"applied": True, "updated": ["1"]}
        assert store.get_schedule("1").shifts["2025-11-03"].type.value == "Q1"

    def test_no_suggestion_leaves_store_unchanged(self, test_client, coordinator_headers, store):
        before = store.schedules()
        response = self._suggest(test_client, coordinator_headers, None)

        assert response.json()["applied"] is False
        assert response.json()["reason"] == "no suggestion available"
        assert store.schedules() == before

    def test_ai_calls_run_off_the_event_loop(self, test_client, coordinator_headers):
        """The blocking Gemini calls must run in the threadpool."""
        fake = FakeScheduler(None)
        app.dependency_overrides[get_ai_scheduler] = lambda: fake
        month = {"year": 2025, "month": 11}

        test_client.post("/api/schedules/suggest", json=month, headers=coordinator_headers)
        assert fake.ran_on_event_loop is False

        fake.ran_on_event_loop = None
        response = test_client.post("/api/schedules/insights", json=month, headers=coordinator_headers)
        assert response.json() == {"insights": "ok"}
        assert fake.ran_on_event_loop is False

    def test_malformed_proposal_leaves_store_unchanged(self, test_client, coordinator_headers, store):
        response = self._suggest(
            test_client,
            coordinator_headers,
            [
                {"employeeName": "Ana Silva", "shifts": [{"day": 3, "type": "T1"}]},
                {"employeeName": "Carlos Mendes", "shifts": [{"day": "bad", "type": "T1"}]},
            ],
        )

        assert response.json()["applied"] is False
        assert store.get_schedule("1").shifts == {}


class TestReports:
    def _book(self, client, headers):
        client.post(
            "/api/schedules/1/edit",
            json={"date": "2025-03-10", "type": "T1", "slots": {"MORNING": {"active": True}, "AFTERNOON": {"active": True}}},
            headers=headers,
        )

    def test_payroll_example(self, test_client, supervisor_headers):
        self._book(test_client, supervisor_headers)

        response = test_client.get("/api/reports/payroll?year=2025&month=3", headers=supervisor_headers)

        data = response.json()
        ana = data["per_employee"][0]
        assert ana["hours_40h"] == 8
        assert ana["gross_value"] == 256.0
        assert data["totals"]["net_value"] == 256.0

    def test_payroll_for_one_employee(self, test_client, supervisor_headers):
        self._book(test_client, supervisor_headers)
        response = test_client.get("/api/reports/payroll?year=2025&month=3&employee_id=2", headers=supervisor_headers)
        assert [row["employee_id"] for row in response.json()["per_employee"]] == ["2"]

    def test_teacher_report_is_narrowed_to_self(self, test_client, supervisor_headers, teacher_headers):
        self._book(test_client, supervisor_headers)

        data = test_client.get("/api/reports/payroll?year=2025&month=3", headers=teacher_headers).json()

        assert [row["employee_id"] for row in data["per_employee"]] == ["1"]
        assert data["totals"]["gross_value"] == 256.0

    def test_payroll_csv(self, test_client, supervisor_headers):
        self._book(test_client, supervisor_headers)
        response = test_client.get("/api/reports/payroll.csv?year=2025&month=3", headers=supervisor_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.splitlines()[-1].startswith("TOTAL")

    def test_idleness_with_threshold_override(self, test_client, supervisor_headers):
        response = test_client.get(
            "/api/reports/idleness?year=2025&month=3&high=0.99&attention=0.99", headers=supervisor_headers
        )
        rows = response.json()
        assert len(rows) == 3
        assert all(row["status"] == "HIGH" for row in rows)

    def test_annual_overview(self, test_client, supervisor_headers):
        self._book(test_client, supervisor_headers)
        months = test_client.get("/api/reports/annual?year=2025", headers=supervisor_headers).json()["months"]
        assert len(months) == 12
        assert months[2]["source"] == "REAL"

    def test_invalid_period_is_400(self, test_client, supervisor_headers):
        assert test_client.get("/api/reports/payroll?year=0", headers=supervisor_headers).status_code == 400


class TestSystem:
    def test_update_deductions(self, test_client, admin_headers, store):
        response = test_client.put(
            "/api/system/deductions",
            json={"40H": {"ir": 10, "inss": 5, "unimed": 0}, "20H": {"ir": 0, "inss": 0, "unimed": 2}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert store.deductions.h40.ir == 10
        assert response.json()["20H"]["unimed"] == 2

    def test_negative_deduction_is_422(self, test_client, admin_headers):
        response = test_client.put("/api/system/deductions", json={"40H": {"ir": -1}}, headers=admin_headers)
        assert response.status_code == 422

    def test_hourly_rate(self, test_client, admin_headers, store):
        response = test_client.put("/api/system/hourly-rate", json={"hourly_rate": 40}, headers=admin_headers)
        assert response.json() == {"hourly_rate": 40.0}
        assert store.hourly_rate == 40.0
        assert test_client.put("/api/system/hourly-rate", json={"hourly_rate": -1}, headers=admin_headers).status_code == 422

    def test_coordinator_cannot_change_settings(self, test_client, coordinator_headers):
        response = test_client.put("/api/system/hourly-rate", json={"hourly_rate": 40}, headers=coordinator_headers)
        assert response.status_code == 403

    def test_export_then_import(self, test_client, admin_headers, store):
        exported = test_client.get("/api/system/export", headers=admin_headers).json()
        store.register_employee(store.get_employee("1").model_copy(update={"id": "", "name": "Extra"}))

        response = test_client.post("/api/system/import", json=exported, headers=admin_headers)

        assert response.status_code == 200
        assert len(store.list_employees()) == 3

    def test_invalid_import_changes_nothing(self, test_client, admin_headers, store):
        response = test_client.post(
            "/api/system/import", json={"employees": [{"name": "no id"}]}, headers=admin_headers
        )
        assert response.status_code == 400
        assert len(store.list_employees()) == 3

    def test_audit_log_records_actions(self, test_client, admin_headers):
        test_client.put("/api/system/hourly-rate", json={"hourly_rate": 35}, headers=admin_headers)

        entries = test_client.get("/api/system/audit-log", headers=admin_headers).json()

        assert entries[0]["module"] == "system"
        assert entries[0]["action"] == "settings"
        assert entries[0]["username"] == "admin"
