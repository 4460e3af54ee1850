"""Tests for waitlist positions and processing."""

from tests.helpers import API, create_group, create_student, enroll


async def _add(client, headers, group_id: str, **candidate) -> dict:
    response = await client.post(f"{API}/groups/{group_id}/waitlist", json=candidate, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _process(client, headers, entry_id: str, action: str):
    return await client.post(f"{API}/waitlist/{entry_id}/process", json={"action": action}, headers=headers)


async def _waiting_positions(client, headers, group_id: str) -> dict[str, int]:
    response = await client.get(f"{API}/groups/{group_id}/waitlist", headers=headers)
    return {e["first_name"]: e["position"] for e in response.json()["data"] if e["status"] == "waiting"}


class TestWaitlist:
    """Tests for dense waitlist ordering."""

    async def test_positions_stay_dense(self, client, admin_headers, course):
        """Test that every exit from waiting closes the gap it leaves."""
        group = await create_group(client, admin_headers, course["id"], capacity=1)
        ann = await _add(client, admin_headers, group["id"], first_name="Ann", last_name="A", email="ANN@x.io")
        ben = await _add(client, admin_headers, group["id"], first_name="Ben", last_name="B")
        cat = await _add(client, admin_headers, group["id"], first_name="Cat", last_name="C")
        assert [ann["position"], ben["position"], cat["position"]] == [1, 2, 3]
        assert ann["email"] == "ann@x.io"

        offered = await _process(client, admin_headers, ben["id"], "offer")
        assert offered.status_code == 200
        assert offered.json()["data"]["status"] == "offered"
        assert offered.json()["data"]["position"] is None
        assert offered.json()["data"]["offered_at"] is not None
        assert await _waiting_positions(client, admin_headers, group["id"]) == {"Ann": 1, "Cat": 2}

        declined = await _process(client, admin_headers, ann["id"], "decline")
        assert declined.json()["data"]["status"] == "declined"
        assert await _waiting_positions(client, admin_headers, group["id"]) == {"Cat": 1}

        accepted = await _process(client, admin_headers, cat["id"], "accept")
        assert accepted.status_code == 200, accepted.text
        assert accepted.json()["data"]["status"] == "accepted"
        assert accepted.json()["data"]["student_id"] is not None
        assert await _waiting_positions(client, admin_headers, group["id"]) == {}

        response = await client.get(f"{API}/groups/{group['id']}", headers=admin_headers)
        assert response.json()["data"]["current_enrollment"] == 1

        listed = await client.get(f"{API}/groups/{group['id']}/waitlist", headers=admin_headers)
        assert [e["status"] for e in listed.json()["data"]][0] == "offered"

    async def test_new_entries_append_after_compaction(self, client, admin_headers, group):
        ann = await _add(client, admin_headers, group["id"], first_name="Ann", last_name="A")
        await _add(client, admin_headers, group["id"], first_name="Ben", last_name="B")
        await _process(client, admin_headers, ann["id"], "expire")

        dan = await _add(client, admin_headers, group["id"], first_name="Dan", last_name="D")
        assert dan["position"] == 2
        assert await _waiting_positions(client, admin_headers, group["id"]) == {"Ben": 1, "Dan": 2}

    async def test_accept_into_full_group_changes_nothing(self, client, admin_headers, course):
        group = await create_group(client, admin_headers, course["id"], capacity=1)
        seated = await create_student(client, admin_headers, "Sam")
        assert (await enroll(client, admin_headers, group["id"], seated["id"])).status_code == 201

        ann = await _add(client, admin_headers, group["id"], first_name="Ann", last_name="A")
        response = await _process(client, admin_headers, ann["id"], "accept")
        assert response.status_code == 409
        assert response.json()["code"] == "CAPACITY_EXCEEDED"

        assert await _waiting_positions(client, admin_headers, group["id"]) == {"Ann": 1}
        students = await client.get(f"{API}/students", headers=admin_headers)
        assert students.json()["pagination"]["total"] == 1

    async def test_accept_reuses_student_with_same_email(self, client, admin_headers, group):
        """Test that accepting a prospect links the existing student with that email."""
        existing = await client.post(
            f"{API}/students",
            json={"first_name": "Ann", "last_name": "A", "email": "ann@x.io"},
            headers=admin_headers,
        )
        ann = await _add(client, admin_headers, group["id"], first_name="Ann", last_name="A", email="Ann@X.io")

        accepted = await _process(client, admin_headers, ann["id"], "accept")
        assert accepted.status_code == 200, accepted.text
        assert accepted.json()["data"]["student_id"] == existing.json()["data"]["id"]

        students = await client.get(f"{API}/students", headers=admin_headers)
        assert students.json()["pagination"]["total"] == 1

    async def test_invalid_transition(self, client, admin_headers, group):
        ann = await _add(client, admin_headers, group["id"], first_name="Ann", last_name="A")
        await _process(client, admin_headers, ann["id"], "decline")

        response = await _process(client, admin_headers, ann["id"], "accept")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_OPERATION"

    async def test_existing_student_cannot_queue_twice(self, client, admin_headers, group):
        student = await create_student(client, admin_headers, "Ann")
        entry = await _add(client, admin_headers, group["id"], student_id=student["id"])
        assert entry["first_name"] == "Ann"

        response = await client.post(
            f"{API}/groups/{group['id']}/waitlist", json={"student_id": student["id"]}, headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ENTRY"

    async def test_enrolled_student_cannot_queue(self, client, admin_headers, group):
        student = await create_student(client, admin_headers, "Ann")
        await enroll(client, admin_headers, group["id"], student["id"])

        response = await client.post(
            f"{API}/groups/{group['id']}/waitlist", json={"student_id": student["id"]}, headers=admin_headers
        )
        assert response.json()["code"] == "INVALID_OPERATION"

    async def test_candidate_is_required(self, client, admin_headers, group):
        response = await client.post(f"{API}/groups/{group['id']}/waitlist", json={"first_name": "Ann"}, headers=admin_headers)
        assert response.status_code == 422
