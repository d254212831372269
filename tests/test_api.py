"""HTTP API tests against an in-memory database."""

from datetime import date
from uuid import UUID, uuid4

import httpx
import pytest

from attendance_payroll.api.app import create_app
from attendance_payroll.api.dependencies import get_db_session
from attendance_payroll.config import Settings
from attendance_payroll.models import Employee
from attendance_payroll.services import LeaveSpan

ACTOR = "6f1c9a52-2b6e-4b8e-9a55-0d6a2c1f7e01"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="WARNING",
        tax_rate="0.10",
        standard_monthly_minutes="9600",
        overtime_multiplier="1",
        default_shift_start="09:00",
        default_shift_end="17:00",
        attendance_timezone="UTC",
    )


@pytest.fixture
def app(settings, session_factory, emitter, leave_provider):
    app = create_app(settings, leave_provider=leave_provider, emitter=emitter)

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def employee_id(session_factory) -> UUID:
    """Committed employee so every request session can see it."""
    async with session_factory() as session:
        employee = Employee(full_name="Api Employee", base_salary=3000, department_id=uuid4())
        session.add(employee)
        await session.commit()
        return employee.employee_id


async def work_day(client, employee_id, day, check_in="09:00", check_out="17:00"):
    work_date = f"2026-03-{day:02d}"
    await client.post(
        "/api/v1/attendance/check-in",
        json={
            "employee_id": str(employee_id),
            "work_date": work_date,
            "observed_at": f"{work_date}T{check_in}:00Z",
        },
    )
    return await client.post(
        "/api/v1/attendance/check-out",
        json={
            "employee_id": str(employee_id),
            "work_date": work_date,
            "observed_at": f"{work_date}T{check_out}:00Z",
        },
    )


class TestHealth:
    async def test_live(self, client):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["database"] == "healthy"
        assert body["status"] == "healthy"
        assert body["attendance_timezone"] == "UTC"


class TestAttendanceApi:
    async def test_check_in_derives_lateness(self, client, employee_id, captured_events):
        response = await client.post(
            "/api/v1/attendance/check-in",
            headers={"X-Actor-ID": ACTOR},
            json={
                "employee_id": str(employee_id),
                "work_date": "2026-03-10",
                "observed_at": "2026-03-10T09:15:00Z",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "late"
        assert body["late_minutes"] == 15
        assert body["version"] == 1
        assert [e.event_type for e in captured_events] == ["CheckedIn"]

    async def test_bad_actor_header(self, client, employee_id):
        response = await client.post(
            "/api/v1/attendance/check-in",
            headers={"X-Actor-ID": "not-a-uuid"},
            json={
                "employee_id": str(employee_id),
                "work_date": "2026-03-10",
                "observed_at": "2026-03-10T09:00:00Z",
            },
        )
        assert response.status_code == 400

    async def test_check_out_without_check_in(self, client, employee_id, captured_events):
        response = await client.post(
            "/api/v1/attendance/check-out",
            json={
                "employee_id": str(employee_id),
                "work_date": "2026-03-10",
                "observed_at": "2026-03-10T17:00:00Z",
            },
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert captured_events == []

    async def test_stale_version_conflict(self, client, employee_id):
        first = await client.post(
            "/api/v1/attendance/check-in",
            json={
                "employee_id": str(employee_id),
                "work_date": "2026-03-10",
                "observed_at": "2026-03-10T09:00:00Z",
            },
        )
        payload = {
            "employee_id": str(employee_id),
            "work_date": "2026-03-10",
            "minutes": 30,
            "reason": "lunch",
            "expected_version": first.json()["version"],
        }
        assert (await client.post("/api/v1/attendance/breaks", json=payload)).status_code == 200

        response = await client.post("/api/v1/attendance/breaks", json=payload)
        assert response.status_code == 409
        assert response.json()["code"] == "CONCURRENT_MODIFICATION"

    async def test_overtime_rejection(self, client, employee_id):
        await work_day(client, employee_id, 10, check_out="18:30")
        day = {"employee_id": str(employee_id), "work_date": "2026-03-10"}
        await client.post("/api/v1/attendance/overtime-approval", json=day)

        response = await client.post(
            "/api/v1/attendance/overtime-rejection", json={**day, "reason": "not requested"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["overtime_minutes"] == 90
        assert body["overtime_approved"] is False

    async def test_overtime_closed_after_generation(self, client, employee_id):
        await work_day(client, employee_id, 10, check_out="18:30")
        await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})

        response = await client.post(
            "/api/v1/attendance/overtime-approval",
            json={"employee_id": str(employee_id), "work_date": "2026-03-10"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_day_view_applies_leave(self, client, employee_id, leave_provider):
        leave_provider.add(LeaveSpan(employee_id, date(2026, 3, 12), date(2026, 3, 12), "sick"))

        response = await client.get(f"/api/v1/attendance/{employee_id}/2026-03-12")

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] is None
        assert body["effective_status"] == "on_leave"
        assert body["leave_type"] == "sick"

    async def test_day_view_not_found(self, client, employee_id):
        response = await client.get(f"/api/v1/attendance/{employee_id}/2026-03-12")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_monthly_summary(self, client, employee_id):
        await work_day(client, employee_id, 2, check_in="09:30")
        await client.post(
            "/api/v1/attendance/absent",
            json={"employee_id": str(employee_id), "work_date": "2026-03-03", "reason": "no show"},
        )

        response = await client.get(
            f"/api/v1/attendance/summary/{employee_id}", params={"month": 3, "year": 2026}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["present_days"] == 1
        assert body["late_days"] == 1
        assert body["absent_days"] == 1
        assert body["suggested_reasons"] == {
            "absent": "Deduction for 1 days absent in March 2026",
            "late": "Deduction for late arrival 1 times in March 2026",
        }


class TestLedgerApi:
    async def test_create_and_list(self, client, employee_id):
        response = await client.post(
            "/api/v1/ledger",
            headers={"X-Actor-ID": ACTOR},
            json={
                "employee_id": str(employee_id),
                "entry_type": "bonus",
                "amount": 200,
                "reason": "Q1 target",
                "month": 3,
                "year": 2026,
            },
        )
        assert response.status_code == 201
        assert response.json()["created_by"] == ACTOR

        listing = await client.get(
            "/api/v1/ledger",
            params={"employee_id": str(employee_id), "month": 3, "year": 2026},
        )
        assert listing.json()["total"] == 1

    async def test_invalid_amount(self, client, employee_id):
        response = await client.post(
            "/api/v1/ledger",
            json={
                "employee_id": str(employee_id),
                "entry_type": "deduction",
                "amount": 0,
                "reason": "nothing",
                "month": 3,
                "year": 2026,
            },
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestPayrollApi:
    async def test_month_end_flow(self, client, employee_id, captured_events):
        for day in (2, 3, 4, 5, 6):
            await work_day(client, employee_id, day, check_out="19:00")
            approval = await client.post(
                "/api/v1/attendance/overtime-approval",
                json={"employee_id": str(employee_id), "work_date": f"2026-03-{day:02d}"},
            )
            assert approval.status_code == 200

        for entry_type, amount in (("bonus", 200), ("deduction", 50)):
            created = await client.post(
                "/api/v1/ledger",
                json={
                    "employee_id": str(employee_id),
                    "entry_type": entry_type,
                    "amount": amount,
                    "reason": entry_type,
                    "month": 3,
                    "year": 2026,
                },
            )
            assert created.status_code == 201
        entry_id = created.json()["entry_id"]

        preview = await client.post("/api/v1/payroll/preview", json={"month": 3, "year": 2026})
        assert preview.json()["total_net"] == 3004

        generated = await client.post(
            "/api/v1/payroll/generate",
            headers={"X-Actor-ID": ACTOR},
            json={"month": 3, "year": 2026},
        )
        assert generated.status_code == 201
        [record] = generated.json()["items"]
        assert record["overtime_pay"] == 188
        assert record["gross_salary"] == 3338
        assert record["tax_deduction"] == 334
        assert record["net_salary"] == 3004
        assert record["status"] == "pending"

        again = await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})
        assert again.status_code == 409
        assert again.json()["code"] == "ALREADY_GENERATED"

        frozen = await client.patch(f"/api/v1/ledger/{entry_id}", json={"amount": 10})
        assert frozen.status_code == 409
        assert frozen.json()["code"] == "IMMUTABLE_ENTRY"

        record_id = record["payroll_record_id"]
        early_pay = await client.post(
            f"/api/v1/payroll/{record_id}/pay", json={"payment_method": "cash"}
        )
        assert early_pay.status_code == 409
        assert early_pay.json()["code"] == "INVALID_TRANSITION"

        approved = await client.post(f"/api/v1/payroll/{record_id}/approve")
        assert approved.json()["status"] == "approved"

        paid = await client.post(
            f"/api/v1/payroll/{record_id}/pay",
            json={"payment_method": "bank_transfer", "payment_reference": "TRX-1"},
        )
        assert paid.status_code == 200
        assert paid.json()["status"] == "paid"

        listing = await client.get("/api/v1/payroll", params={"month": 3, "year": 2026})
        assert listing.json()["totals"]["total_net"] == 3004
        assert listing.json()["totals"]["by_status"] == {"paid": 1}

        payroll_events = [e.event_type for e in captured_events if e.category.value == "payroll"]
        assert payroll_events == ["PayrollGenerated", "PayrollApproved", "PayrollPaid"]

    async def test_failed_generation_is_not_emitted(self, client, employee_id, captured_events):
        await client.post(
            "/api/v1/ledger",
            json={
                "employee_id": str(employee_id),
                "entry_type": "deduction",
                "amount": 5000,
                "reason": "exceeds salary",
                "month": 3,
                "year": 2026,
            },
        )

        response = await client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2026})

        assert response.status_code == 422
        assert response.json()["code"] == "PAYROLL_COMPUTATION_FAILED"
        assert not [e for e in captured_events if e.event_type == "PayrollGenerated"]

        listing = await client.get("/api/v1/payroll", params={"month": 3, "year": 2026})
        assert listing.json()["items"] == []

    async def test_unknown_record(self, client):
        response = await client.get(f"/api/v1/payroll/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_bulk_approve_requires_ids(self, client):
        response = await client.post("/api/v1/payroll/approve", json={"record_ids": []})
        assert response.status_code == 422
