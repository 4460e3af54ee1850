"""Tests for batch attendance upserts."""

import uuid
from datetime import datetime

import pytest

from educrm.models import Role
from tests.helpers import API, bearer, create_student, enroll, login, seed_user


@pytest.fixture
async def roster(client, admin_headers, group) -> list[dict]:
    students = [await create_student(client, admin_headers, name) for name in ("Ann", "Ben")]
    for student in students:
        assert (await enroll(client, admin_headers, group["id"], student["id"])).status_code == 201
    return students


def _batch(day: str, *entries: tuple[str, str]) -> dict:
    return {"date": day, "entries": [{"student_id": sid, "status": status} for sid, status in entries]}


class TestAttendanceBatch:
    """Tests for idempotent attendance recording."""

    async def test_upsert_is_idempotent(self, client, admin_headers, group, roster):
        """Test that resubmitting a batch updates rows instead of duplicating them."""
        url = f"{API}/groups/{group['id']}/attendance/batch"
        s1, s2 = (s["id"] for s in roster)
        payload = _batch("2025-03-10", (s1, "present"), (s2, "present"))

        first = await client.post(url, json=payload, headers=admin_headers)
        assert first.status_code == 200, first.text
        assert first.json()["data"]["created"] == 2
        assert first.json()["data"]["updated"] == 0

        second = await client.post(url, json=payload, headers=admin_headers)
        assert second.json()["data"]["created"] == 0
        assert second.json()["data"]["updated"] == 2

        before = {r["student_id"]: datetime.fromisoformat(r["updated_at"]) for r in first.json()["data"]["records"]}
        after = {r["student_id"]: datetime.fromisoformat(r["updated_at"]) for r in second.json()["data"]["records"]}
        assert all(after[sid] > before[sid] for sid in (s1, s2))

        flipped = await client.post(url, json=_batch("2025-03-10", (s1, "absent")), headers=admin_headers)
        assert flipped.json()["data"]["updated"] == 1

        listed = await client.get(f"{API}/groups/{group['id']}/attendance", headers=admin_headers)
        records = listed.json()["data"]
        assert len(records) == 2
        assert {r["student_id"]: r["status"] for r in records} == {s1: "absent", s2: "present"}

    async def test_recorded_by_is_the_caller(self, client, container, group, roster):
        clerk = await seed_user(container, "clerk@x.io", "hunter22", Role.STAFF)
        token = (await login(client, "clerk@x.io", "hunter22"))["token"]

        response = await client.post(
            f"{API}/groups/{group['id']}/attendance/batch",
            json=_batch("2025-03-11", (roster[0]["id"], "late")),
            headers=bearer(token),
        )
        assert response.json()["data"]["records"][0]["recorded_by"] == str(clerk.id)

    async def test_duplicate_student_in_batch(self, client, admin_headers, group, roster):
        sid = roster[0]["id"]
        response = await client.post(
            f"{API}/groups/{group['id']}/attendance/batch",
            json=_batch("2025-03-10", (sid, "present"), (sid, "absent")),
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_unenrolled_student_fails_whole_batch(self, client, admin_headers, group, roster):
        """Test that one bad entry writes nothing at all."""
        outsider = await create_student(client, admin_headers, "Zed")
        response = await client.post(
            f"{API}/groups/{group['id']}/attendance/batch",
            json=_batch("2025-03-10", (roster[0]["id"], "present"), (outsider["id"], "present")),
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_OPERATION"
        assert response.json()["details"]["student_ids"] == [outsider["id"]]

        listed = await client.get(f"{API}/groups/{group['id']}/attendance", headers=admin_headers)
        assert listed.json()["data"] == []

    async def test_date_range_filter(self, client, admin_headers, group, roster):
        url = f"{API}/groups/{group['id']}/attendance/batch"
        for day in ("2025-03-10", "2025-03-12", "2025-03-14"):
            await client.post(url, json=_batch(day, (roster[0]["id"], "present")), headers=admin_headers)

        listed = await client.get(
            f"{API}/groups/{group['id']}/attendance",
            params={"date_from": "2025-03-11", "date_to": "2025-03-14"},
            headers=admin_headers,
        )
        assert sorted(r["date"] for r in listed.json()["data"]) == ["2025-03-12", "2025-03-14"]

    async def test_students_cannot_record_attendance(self, client, container, admin_headers, group, roster):
        await seed_user(container, "kid@x.io", "hunter22", Role.STUDENT, student_id=uuid.UUID(roster[0]["id"]))
        token = (await login(client, "kid@x.io", "hunter22"))["token"]

        response = await client.post(
            f"{API}/groups/{group['id']}/attendance/batch",
            json=_batch("2025-03-10", (roster[0]["id"], "present")),
            headers=bearer(token),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
