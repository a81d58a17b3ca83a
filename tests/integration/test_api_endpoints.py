"""Integration tests for API endpoints."""

from datetime import time
from decimal import Decimal
from uuid import uuid4

import pytest

from site_payroll.api.dependencies import get_attendance_source, get_rule_repository
from site_payroll.models import Role
from site_payroll.sources import FakeAttendanceSource, FakeRuleRepository

pytestmark = pytest.mark.asyncio

RULES_URL = "/api/v1/rules"
PAYROLL_URL = "/api/v1/payroll"
DAY = "2024-05-13"

HOURLY_RULE = {"name": "Standard hourly", "rule_type": "hourly_rate", "base_amount": "15000"}
OVERTIME_RULE = {
    "name": "Overtime",
    "rule_type": "overtime_multiplier",
    "base_amount": "0",
    "multiplier": "1.5",
}


async def create_rule(client, payload: dict) -> dict:
    response = await client.post(RULES_URL, json=payload)
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def calculate(client, **payload) -> dict:
    body = {"date_from": DAY, "date_to": DAY, **payload}
    response = await client.post(f"{PAYROLL_URL}/calculate", json=body)
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def list_records(client, **params) -> dict:
    response = await client.get(f"{PAYROLL_URL}/records", params=params)
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_health_check(self, client):
        """Test health endpoint returns healthy."""
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["data_source"] == "database"

    async def test_readiness_check(self, client):
        """Test readiness endpoint."""
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client):
        """Test liveness endpoint."""
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestRuleEndpoints:
    """Tests for rule administration."""

    async def test_create_rule(self, client):
        """Test creating a rule returns it in the envelope."""
        response = await client.post(RULES_URL, json=HOURLY_RULE)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Rule created"
        assert body["data"]["name"] == "Standard hourly"
        assert Decimal(body["data"]["base_amount"]) == Decimal("15000")
        assert body["data"]["site_id"] is None
        assert body["data"]["is_active"] is True

    async def test_update_rule(self, client):
        """Test updating a rule by id."""
        created = await create_rule(client, HOURLY_RULE)

        response = await client.post(
            RULES_URL,
            json={**HOURLY_RULE, "id": created["id"], "base_amount": "16000", "role": "worker"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == created["id"]
        assert Decimal(data["base_amount"]) == Decimal("16000")
        assert data["role"] == "worker"

    async def test_blank_scope_fields_are_wildcards(self, client):
        """Test empty site and role from a form mean any."""
        data = await create_rule(client, {**HOURLY_RULE, "site_id": "", "role": ""})

        assert data["site_id"] is None
        assert data["role"] is None

    async def test_update_unknown_rule(self, client):
        """Test updating a missing rule returns 404."""
        response = await client.post(RULES_URL, json={**HOURLY_RULE, "id": str(uuid4())})

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NOT_FOUND"

    async def test_negative_amount_rejected(self, client):
        """Test domain validation surfaces as 400."""
        response = await client.post(RULES_URL, json={**HOURLY_RULE, "base_amount": "-1"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_unknown_rule_type_rejected(self, client):
        """Test malformed body surfaces as 422."""
        response = await client.post(RULES_URL, json={**HOURLY_RULE, "rule_type": "weekly"})

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_REQUEST"

    async def test_list_rules(self, client):
        """Test listing with site filter and pagination."""
        site_id = str(uuid4())
        await create_rule(client, HOURLY_RULE)
        await create_rule(client, {**HOURLY_RULE, "name": "Site rate", "site_id": site_id})
        await create_rule(client, {**HOURLY_RULE, "name": "Other", "site_id": str(uuid4())})

        response = await client.get(RULES_URL, params={"site_id": site_id})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert {r["name"] for r in data["rules"]} == {"Standard hourly", "Site rate"}

        response = await client.get(RULES_URL, params={"limit": 1, "page": 2})
        data = response.json()["data"]
        assert data["total"] == 3
        assert data["pages"] == 3
        assert len(data["rules"]) == 1

    async def test_delete_rules(self, client):
        """Test deleting by id reports the count."""
        created = await create_rule(client, HOURLY_RULE)

        response = await client.post(
            f"{RULES_URL}/delete", json={"ids": [created["id"], str(uuid4())]}
        )

        assert response.status_code == 200
        assert response.json()["data"]["deleted_count"] == 1

        listing = await client.get(RULES_URL)
        assert listing.json()["data"]["total"] == 0

    async def test_delete_without_ids(self, client):
        """Test an empty delete is a validation error."""
        response = await client.post(f"{RULES_URL}/delete", json={"ids": []})

        assert response.status_code == 400


class TestPayrollWorkflow:
    """Tests for calculate, adjust, approve and report."""

    async def test_full_cycle(self, client, seed, make_attendance):
        """Test the calculate -> adjust -> approve -> report cycle."""
        attendance = make_attendance()
        await seed(attendance)
        await create_rule(client, HOURLY_RULE)
        await create_rule(client, OVERTIME_RULE)

        summary = await calculate(client)
        assert summary["calculated_count"] == 1
        assert summary["skipped_count"] == 0
        assert summary["failed_count"] == 0

        listing = await list_records(client)
        assert listing["total"] == 1
        record = listing["records"][0]
        assert record["worker_id"] == str(attendance.worker_id)
        assert Decimal(record["regular_hours"]) == Decimal("8")
        assert Decimal(record["overtime_hours"]) == Decimal("3")
        assert Decimal(record["total_pay"]) == Decimal("187500")
        assert record["status"] == "calculated"

        response = await client.patch(
            f"{PAYROLL_URL}/records/{record['id']}", json={"bonus_pay": "5000"}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["total_pay"]) == Decimal("192500")

        response = await client.post(f"{PAYROLL_URL}/approve", json={"ids": [record["id"]]})
        assert response.status_code == 200
        assert response.json()["data"] == {"approved_count": 1, "rejected_ids": []}

        response = await client.patch(
            f"{PAYROLL_URL}/records/{record['id']}", json={"bonus_pay": "1"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "FINALIZED_RECORD"

        stats = (await client.get(f"{PAYROLL_URL}/stats")).json()["data"]
        assert stats["distinct_worker_count"] == 1
        assert stats["pending_count"] == 0
        assert stats["approved_count"] == 1
        assert Decimal(stats["total_payroll"]) == Decimal("192500")

        response = await client.get(f"{PAYROLL_URL}/summary", params={"year": 2024, "month": 5})
        rows = response.json()["data"]
        assert len(rows) == 1
        assert rows[0]["work_days_count"] == 1
        assert rows[0]["work_dates"] == [DAY]

    async def test_recalculation_keeps_approved_record(self, client, seed, make_attendance):
        """Test a rerun reports approved records instead of overwriting them."""
        await seed(make_attendance())
        await create_rule(client, HOURLY_RULE)
        await create_rule(client, OVERTIME_RULE)
        await calculate(client)
        record = (await list_records(client))["records"][0]
        await client.post(f"{PAYROLL_URL}/approve", json={"ids": [record["id"]]})

        summary = await calculate(client)

        assert summary["calculated_count"] == 0
        assert summary["failed_count"] == 1
        assert summary["issues"][0]["kind"] == "finalized_conflict"

        summary = await calculate(client, override=True)
        assert summary["calculated_count"] == 1
        listing = await list_records(client, status="calculated")
        assert listing["total"] == 1

    async def test_skipped_attendance_reported(self, client, seed, make_attendance):
        """Test invalid time pairs are counted and not written."""
        await seed(make_attendance(check_in=time(19, 0), check_out=time(8, 0)))
        await create_rule(client, HOURLY_RULE)

        summary = await calculate(client)

        assert summary["skipped_count"] == 1
        assert summary["issues"][0]["kind"] == "skipped"
        assert (await list_records(client))["total"] == 0

    async def test_missing_rule_reported(self, client, seed, make_attendance):
        """Test a day without a resolvable rule fails alone."""
        await seed(make_attendance())

        summary = await calculate(client)

        assert summary["failed_count"] == 1
        assert summary["issues"][0]["kind"] == "missing_rule"

    async def test_missing_date_is_validation_error(self, client):
        """Test a window without an end date returns 400."""
        response = await client.post(f"{PAYROLL_URL}/calculate", json={"date_from": DAY})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"

    async def test_approve_unknown_ids(self, client):
        """Test unknown ids come back as rejected."""
        unknown = str(uuid4())

        response = await client.post(f"{PAYROLL_URL}/approve", json={"ids": [unknown]})

        assert response.status_code == 200
        assert response.json()["data"] == {"approved_count": 0, "rejected_ids": [unknown]}

    async def test_adjust_unknown_record(self, client):
        """Test adjusting a missing record returns 404."""
        response = await client.patch(
            f"{PAYROLL_URL}/records/{uuid4()}", json={"bonus_pay": "1000"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    async def test_invalid_status_filter(self, client):
        """Test an unknown status filter returns 422."""
        response = await client.get(f"{PAYROLL_URL}/records", params={"status": "void"})

        assert response.status_code == 422

    async def test_empty_stats(self, client):
        """Test stats over no records are all zero."""
        response = await client.get(f"{PAYROLL_URL}/stats")

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["distinct_worker_count"] == 0
        assert Decimal(stats["overtime_percentage"]) == Decimal("0")

    async def test_invalid_month(self, client):
        """Test an out of range month returns 400."""
        response = await client.get(f"{PAYROLL_URL}/summary", params={"year": 2024, "month": 13})

        assert response.status_code == 400

    @pytest.mark.parametrize("path", ["/stats", "/records"])
    async def test_reversed_window_is_validation_error(self, client, path):
        """Test a date_from after date_to returns 400 on read endpoints."""
        response = await client.get(
            f"{PAYROLL_URL}{path}", params={"date_from": "2024-05-31", "date_to": "2024-05-01"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_last_supported_month(self, client):
        """Test the summary accepts December of the last supported year."""
        response = await client.get(f"{PAYROLL_URL}/summary", params={"year": 9999, "month": 12})

        assert response.status_code == 200
        assert response.json()["data"] == []

    async def test_calculate_one_worker(self, client, seed, make_attendance):
        """Test worker_id limits a run to that worker's attendance."""
        chosen = make_attendance(worker_id=uuid4())
        await seed(chosen, make_attendance(worker_id=uuid4()))
        await create_rule(client, HOURLY_RULE)
        await create_rule(client, OVERTIME_RULE)

        summary = await calculate(client, worker_id=str(chosen.worker_id))

        assert summary["calculated_count"] == 1
        listing = await list_records(client)
        assert listing["total"] == 1
        assert listing["records"][0]["worker_id"] == str(chosen.worker_id)


class TestFakeDataSource:
    """Tests for runs against the in-memory providers."""

    async def test_calculate_with_fake_providers(self, app, client, make_attendance):
        """Test the fake worker rate and overtime multiplier apply."""
        attendance = FakeAttendanceSource([make_attendance(worker_role=Role.WORKER)])
        app.dependency_overrides[get_attendance_source] = lambda: attendance
        app.dependency_overrides[get_rule_repository] = lambda: FakeRuleRepository()

        summary = await calculate(client)

        assert summary["calculated_count"] == 1
        record = (await list_records(client))["records"][0]
        assert Decimal(record["base_pay"]) == Decimal("120000")
        assert Decimal(record["overtime_pay"]) == Decimal("67500")

    async def test_site_manager_paid_by_day(self, app, client, make_attendance):
        """Test the fake site manager daily rate applies to the whole day."""
        attendance = FakeAttendanceSource([make_attendance(worker_role=Role.SITE_MANAGER)])
        app.dependency_overrides[get_attendance_source] = lambda: attendance
        app.dependency_overrides[get_rule_repository] = lambda: FakeRuleRepository()

        summary = await calculate(client)

        assert summary["calculated_count"] == 1
        assert summary["failed_count"] == 0
        record = (await list_records(client))["records"][0]
        assert Decimal(record["base_pay"]) == Decimal("275000")
        assert Decimal(record["overtime_pay"]) == Decimal("0")
        assert record["notes"] == "Daily rate 1.38 day(s)"
