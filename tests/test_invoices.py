"""Tests for recurring invoice schedules and generation."""

import pytest

from tests.helpers import API, create_student


@pytest.fixture
async def student(client, admin_headers) -> dict:
    return await create_student(client, admin_headers, "Ann")


async def _schedule(client, headers, student_id: str, anchor: str, cadence: str = "monthly", **fields) -> dict:
    response = await client.post(
        f"{API}/invoices/schedules",
        json={"student_id": student_id, "amount": "100.00", "cadence": cadence, "anchor_date": anchor, **fields},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _generate(client, headers, from_date: str, to_date: str, **fields) -> dict:
    response = await client.post(
        f"{API}/invoices/generate",
        json={"from_date": from_date, "to_date": to_date, **fields},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestInvoiceGeneration:
    """Tests for idempotent invoice generation."""

    async def test_generation_is_idempotent(self, client, admin_headers, student):
        """Test that rerunning the same window creates nothing new."""
        await _schedule(client, admin_headers, student["id"], "2025-01-15")

        first = await _generate(client, admin_headers, "2025-01-01", "2025-04-30")
        assert first["generated"] == 4
        assert first["skipped"] == 0

        second = await _generate(client, admin_headers, "2025-01-01", "2025-04-30")
        assert second["generated"] == 0
        assert second["skipped"] == 4

        response = await client.get(
            f"{API}/students/{student['id']}/invoices",
            params={"sort": "period_start", "order": "asc"},
            headers=admin_headers,
        )
        invoices = response.json()["data"]
        assert [i["period_start"] for i in invoices] == ["2025-01-15", "2025-02-15", "2025-03-15", "2025-04-15"]
        assert invoices[0]["period_end"] == "2025-02-14"
        assert invoices[0]["due_date"] == "2025-02-14"
        assert len({i["invoice_number"] for i in invoices}) == 4

    async def test_wider_window_only_fills_gaps(self, client, admin_headers, student):
        schedule = await _schedule(client, admin_headers, student["id"], "2025-01-15")

        assert (await _generate(client, admin_headers, "2025-01-01", "2025-02-28"))["generated"] == 2
        result = await _generate(client, admin_headers, "2025-01-01", "2025-04-30")
        assert result["generated"] == 2
        assert result["skipped"] == 2

        schedules = await client.get(f"{API}/students/{student['id']}/invoice-schedules", headers=admin_headers)
        current = next(s for s in schedules.json()["data"] if s["id"] == schedule["id"])
        assert current["next_due_date"] == "2025-05-15"
        assert current["last_generated_at"] is not None

    async def test_month_end_anchor(self, client, admin_headers, student):
        await _schedule(client, admin_headers, student["id"], "2025-01-31")
        await _generate(client, admin_headers, "2025-01-01", "2025-04-30")

        response = await client.get(
            f"{API}/students/{student['id']}/invoices",
            params={"sort": "period_start", "order": "asc"},
            headers=admin_headers,
        )
        assert [i["period_start"] for i in response.json()["data"]] == [
            "2025-01-31",
            "2025-02-28",
            "2025-03-31",
            "2025-04-30",
        ]

    async def test_end_date_stops_generation(self, client, admin_headers, student):
        await _schedule(client, admin_headers, student["id"], "2025-01-15", end_date="2025-02-20")
        result = await _generate(client, admin_headers, "2025-01-01", "2025-12-31")
        assert result["generated"] == 2

    async def test_deactivated_schedule_is_skipped(self, client, admin_headers, student):
        schedule = await _schedule(client, admin_headers, student["id"], "2025-01-15")
        response = await client.post(f"{API}/invoices/schedules/{schedule['id']}/deactivate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["active"] is False

        again = await client.post(f"{API}/invoices/schedules/{schedule['id']}/deactivate", headers=admin_headers)
        assert again.json()["code"] == "INVALID_OPERATION"

        result = await _generate(client, admin_headers, "2025-01-01", "2025-04-30")
        assert result["generated"] == 0
        assert result["schedules"] == 0

    async def test_single_schedule_generation(self, client, admin_headers, student):
        target = await _schedule(client, admin_headers, student["id"], "2025-01-15")
        await _schedule(client, admin_headers, student["id"], "2025-01-01", cadence="weekly")

        result = await _generate(client, admin_headers, "2025-01-01", "2025-01-31", schedule_id=target["id"])
        assert result["schedules"] == 1
        assert result["generated"] == 1

    async def test_unknown_schedule(self, client, admin_headers):
        response = await client.post(
            f"{API}/invoices/generate",
            json={
                "from_date": "2025-01-01",
                "to_date": "2025-01-31",
                "schedule_id": "00000000-0000-0000-0000-000000000000",
            },
            headers=admin_headers,
        )
        assert response.status_code == 404

    async def test_inverted_window(self, client, admin_headers):
        response = await client.post(
            f"{API}/invoices/generate",
            json={"from_date": "2025-02-01", "to_date": "2025-01-01"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_non_positive_amount_rejected(self, client, admin_headers, student):
        response = await client.post(
            f"{API}/invoices/schedules",
            json={"student_id": student["id"], "amount": "0", "cadence": "monthly", "anchor_date": "2025-01-15"},
            headers=admin_headers,
        )
        assert response.status_code == 422
