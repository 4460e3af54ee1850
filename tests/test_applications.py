"""Tests for the application review and enrollment workflow."""

import uuid

from educrm.models import Role
from tests.helpers import API, bearer, create_course, create_group, login, seed_user


async def _submit(client, course_id: str, group_id: str | None = None, email: str = "ada@x.io", headers=None):
    payload = {"first_name": "Ada", "last_name": "Lovelace", "email": email, "course_id": course_id}
    if group_id:
        payload["preferred_group_id"] = group_id
    return await client.post(f"{API}/applications", json=payload, headers=headers)


class TestApplicationStateMachine:
    """Tests for application transitions."""

    async def test_full_workflow_and_audit_trail(self, client, admin_headers, course, group):
        """Test submit, early enroll, approve, late reject and enroll with its audit rows."""
        response = await _submit(client, course["id"], group["id"], email="Ada@X.io")
        assert response.status_code == 201
        application = response.json()["data"]
        assert application["status"] == "submitted"
        assert application["email"] == "ada@x.io"
        app_url = f"{API}/applications/{application['id']}"

        early = await client.post(f"{app_url}/enroll", headers=admin_headers)
        assert early.status_code == 409
        assert early.json()["code"] == "INVALID_OPERATION"

        approved = await client.post(f"{app_url}/review", json={"decision": "approve", "notes": "ok"}, headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["data"]["status"] == "approved"
        assert approved.json()["data"]["reviewer_id"] is not None
        assert approved.json()["data"]["review_notes"] == "ok"

        rejected = await client.post(f"{app_url}/review", json={"decision": "reject"}, headers=admin_headers)
        assert rejected.status_code == 409
        assert rejected.json()["code"] == "INVALID_OPERATION"

        enrolled = await client.post(f"{app_url}/enroll", headers=admin_headers)
        assert enrolled.status_code == 200, enrolled.text
        data = enrolled.json()["data"]
        assert data["status"] == "enrolled"
        assert data["enrolled_group_id"] == group["id"]
        assert data["enrolled_student_id"] is not None
        assert data["enrolled_at"] is not None

        trail = await client.get(
            f"{API}/audit-logs",
            params={"resource": "application", "resource_id": application["id"], "order": "asc"},
            headers=admin_headers,
        )
        assert [row["action"] for row in trail.json()["data"]] == ["create", "review", "enroll"]

        student = await client.get(f"{API}/students/{data['enrolled_student_id']}", headers=admin_headers)
        assert student.json()["data"]["email"] == "ada@x.io"

    async def test_enroll_reuses_existing_student(self, client, admin_headers, course, group):
        existing = await client.post(
            f"{API}/students",
            json={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@x.io"},
            headers=admin_headers,
        )
        application = (await _submit(client, course["id"], group["id"])).json()["data"]
        app_url = f"{API}/applications/{application['id']}"
        await client.post(f"{app_url}/review", json={"decision": "approve"}, headers=admin_headers)

        enrolled = await client.post(f"{app_url}/enroll", headers=admin_headers)
        assert enrolled.json()["data"]["enrolled_student_id"] == existing.json()["data"]["id"]

    async def test_enroll_into_explicit_group(self, client, admin_headers, course, group):
        other = await create_group(client, admin_headers, course["id"], name="Evening")
        application = (await _submit(client, course["id"], group["id"])).json()["data"]
        app_url = f"{API}/applications/{application['id']}"
        await client.post(f"{app_url}/review", json={"decision": "approve"}, headers=admin_headers)

        enrolled = await client.post(f"{app_url}/enroll", json={"group_id": other["id"]}, headers=admin_headers)
        assert enrolled.json()["data"]["enrolled_group_id"] == other["id"]

    async def test_enroll_without_group(self, client, admin_headers, course):
        application = (await _submit(client, course["id"])).json()["data"]
        app_url = f"{API}/applications/{application['id']}"
        await client.post(f"{app_url}/review", json={"decision": "approve"}, headers=admin_headers)

        response = await client.post(f"{app_url}/enroll", headers=admin_headers)
        assert response.status_code == 422

    async def test_group_from_another_course(self, client, admin_headers, course):
        other_course = await create_course(client, admin_headers, code="JS201")
        foreign = await create_group(client, admin_headers, other_course["id"], name="JS")

        response = await _submit(client, course["id"], foreign["id"])
        assert response.status_code == 422

    async def test_withdraw_after_approval(self, client, admin_headers, course):
        application = (await _submit(client, course["id"])).json()["data"]
        app_url = f"{API}/applications/{application['id']}"
        await client.post(f"{app_url}/review", json={"decision": "approve"}, headers=admin_headers)

        response = await client.post(f"{app_url}/withdraw", headers=admin_headers)
        assert response.json()["data"]["status"] == "withdrawn"
        again = await client.post(f"{app_url}/withdraw", headers=admin_headers)
        assert again.json()["code"] == "INVALID_OPERATION"

    async def test_start_review_then_reject(self, client, admin_headers, course):
        application = (await _submit(client, course["id"])).json()["data"]
        app_url = f"{API}/applications/{application['id']}"

        started = await client.post(f"{app_url}/start-review", headers=admin_headers)
        assert started.json()["data"]["status"] == "under_review"
        rejected = await client.post(f"{app_url}/review", json={"decision": "reject"}, headers=admin_headers)
        assert rejected.json()["data"]["status"] == "rejected"

    async def test_teachers_cannot_review(self, client, container, admin_headers, course):
        teacher = await client.post(
            f"{API}/teachers", json={"first_name": "Margaret", "last_name": "Hamilton"}, headers=admin_headers
        )
        await seed_user(
            container, "mh@x.io", "hunter22", Role.TEACHER, teacher_id=uuid.UUID(teacher.json()["data"]["id"])
        )
        token = (await login(client, "mh@x.io", "hunter22"))["token"]
        application = (await _submit(client, course["id"])).json()["data"]

        response = await client.post(
            f"{API}/applications/{application['id']}/review", json={"decision": "approve"}, headers=bearer(token)
        )
        assert response.status_code == 403

    async def test_submission_is_public_but_listing_is_not(self, client, admin_headers, course):
        assert (await _submit(client, course["id"])).status_code == 201
        assert (await client.get(f"{API}/applications")).status_code == 401

        listed = await client.get(f"{API}/applications", params={"status": "submitted"}, headers=admin_headers)
        assert listed.json()["pagination"]["total"] == 1

    async def test_deleted_course_rejects_submissions(self, client, admin_headers, course):
        assert (await client.delete(f"{API}/courses/{course['id']}", headers=admin_headers)).status_code == 200
        response = await _submit(client, course["id"])
        assert response.status_code == 404
