"""Tests for timetable, exam and event conflict detection."""

from tests.helpers import API, create_group, create_student, enroll


async def _timetable(client, headers, group_id: str, start: str, end: str, room: str | None = None, weekday: int = 0):
    payload = {"group_id": group_id, "weekday": weekday, "start_time": start, "end_time": end}
    if room:
        payload["room"] = room
    return await client.post(f"{API}/timetables", json=payload, headers=headers)


async def _exam(client, headers, group_id: str, start: str, end: str, **fields):
    payload = {"title": fields.pop("title", "Midterm"), "group_id": group_id, "start_at": start, "end_at": end, **fields}
    return await client.post(f"{API}/exams", json=payload, headers=headers)


class TestTimetable:
    """Tests for weekly timetable slots."""

    async def test_overlap_rejected_touching_accepted(self, client, admin_headers, group):
        """Test that overlapping slots conflict while back-to-back slots do not."""
        first = await _timetable(client, admin_headers, group["id"], "09:00", "10:30")
        assert first.status_code == 201, first.text

        clash = await _timetable(client, admin_headers, group["id"], "10:00", "11:00")
        assert clash.status_code == 409
        assert clash.json()["code"] == "SCHEDULE_CONFLICT"
        assert clash.json()["details"]["conflicting_id"] == first.json()["data"]["id"]

        touching = await _timetable(client, admin_headers, group["id"], "10:30", "11:30")
        assert touching.status_code == 201

    async def test_other_weekday_does_not_conflict(self, client, admin_headers, group):
        assert (await _timetable(client, admin_headers, group["id"], "09:00", "10:30")).status_code == 201
        assert (await _timetable(client, admin_headers, group["id"], "09:00", "10:30", weekday=2)).status_code == 201

    async def test_room_is_shared_across_groups(self, client, admin_headers, course, group):
        other = await create_group(client, admin_headers, course["id"], name="Evening")
        assert (await _timetable(client, admin_headers, group["id"], "09:00", "10:00", room="A1")).status_code == 201

        same_room = await _timetable(client, admin_headers, other["id"], "09:30", "10:30", room="A1")
        assert same_room.json()["code"] == "SCHEDULE_CONFLICT"

        other_room = await _timetable(client, admin_headers, other["id"], "09:30", "10:30", room="B2")
        assert other_room.status_code == 201

    async def test_room_names_ignore_case_and_padding(self, client, admin_headers, course, group):
        """Test that room names are compared after lowercasing and trimming."""
        other = await create_group(client, admin_headers, course["id"], name="Evening")
        booked = await _timetable(client, admin_headers, group["id"], "09:00", "10:30", room="R1")
        assert booked.json()["data"]["room"] == "r1"

        clash = await _timetable(client, admin_headers, other["id"], "09:00", "10:30", room=" r1 ")
        assert clash.status_code == 409
        assert clash.json()["code"] == "SCHEDULE_CONFLICT"

    async def test_conflict_names_the_overlapping_slot(self, client, admin_headers, group):
        await _timetable(client, admin_headers, group["id"], "08:00", "09:00")
        later = (await _timetable(client, admin_headers, group["id"], "13:00", "14:00")).json()["data"]

        clash = await _timetable(client, admin_headers, group["id"], "13:30", "15:00")
        assert clash.json()["details"]["conflicting_id"] == later["id"]

    async def test_inverted_interval(self, client, admin_headers, group):
        response = await _timetable(client, admin_headers, group["id"], "11:00", "10:00")
        assert response.status_code == 422

    async def test_deleted_entry_frees_the_slot(self, client, admin_headers, group):
        entry = (await _timetable(client, admin_headers, group["id"], "09:00", "10:00")).json()["data"]
        response = await client.delete(f"{API}/timetables/{entry['id']}", headers=admin_headers)
        assert response.status_code == 200

        assert (await _timetable(client, admin_headers, group["id"], "09:00", "10:00")).status_code == 201
        listed = await client.get(f"{API}/groups/{group['id']}/timetable", headers=admin_headers)
        assert len(listed.json()["data"]) == 1


class TestExams:
    """Tests for exam scheduling and grading."""

    async def test_exam_overlap_within_course(self, client, admin_headers, course, group):
        other = await create_group(client, admin_headers, course["id"], name="Evening")
        first = await _exam(client, admin_headers, group["id"], "2025-05-01T09:00:00Z", "2025-05-01T11:00:00Z")
        assert first.status_code == 201, first.text

        same_group = await _exam(client, admin_headers, group["id"], "2025-05-01T10:00:00Z", "2025-05-01T12:00:00Z")
        assert same_group.json()["code"] == "SCHEDULE_CONFLICT"

        same_course = await _exam(client, admin_headers, other["id"], "2025-05-01T10:00:00Z", "2025-05-01T12:00:00Z")
        assert same_course.json()["code"] == "SCHEDULE_CONFLICT"

        touching = await _exam(client, admin_headers, group["id"], "2025-05-01T11:00:00Z", "2025-05-01T12:00:00Z")
        assert touching.status_code == 201

    async def test_grading_records_the_grader(self, client, admin_headers, group):
        student = await create_student(client, admin_headers, "Ann")
        await enroll(client, admin_headers, group["id"], student["id"])
        exam = (await _exam(client, admin_headers, group["id"], "2025-05-01T09:00:00Z", "2025-05-01T11:00:00Z")).json()["data"]
        me = (await client.get(f"{API}/auth/me", headers=admin_headers)).json()["data"]

        response = await client.post(
            f"{API}/exams/{exam['id']}/results",
            json={"student_id": student["id"], "marks_obtained": "72.5"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        result = response.json()["data"]
        assert result["graded_by"] == me["id"]
        assert result["passed"] is True
        assert result["percentage"] == "72.50"

        regraded = await client.post(
            f"{API}/exams/{exam['id']}/results",
            json={"student_id": student["id"], "marks_obtained": "40"},
            headers=admin_headers,
        )
        assert regraded.json()["data"]["id"] == result["id"]
        assert regraded.json()["data"]["passed"] is False

    async def test_grading_rejects_bad_input(self, client, admin_headers, group):
        student = await create_student(client, admin_headers, "Ann")
        exam = (await _exam(client, admin_headers, group["id"], "2025-05-01T09:00:00Z", "2025-05-01T11:00:00Z")).json()["data"]
        url = f"{API}/exams/{exam['id']}/results"

        not_enrolled = await client.post(url, json={"student_id": student["id"], "marks_obtained": "50"}, headers=admin_headers)
        assert not_enrolled.json()["code"] == "INVALID_OPERATION"

        await enroll(client, admin_headers, group["id"], student["id"])
        too_many = await client.post(url, json={"student_id": student["id"], "marks_obtained": "101"}, headers=admin_headers)
        assert too_many.status_code == 422


class TestEvents:
    """Tests for calendar events."""

    async def test_events_conflict_on_shared_teacher(self, client, admin_headers):
        teacher = await client.post(
            f"{API}/teachers", json={"first_name": "Margaret", "last_name": "Hamilton"}, headers=admin_headers
        )
        teacher_id = teacher.json()["data"]["id"]
        payload = {"title": "Open day", "teacher_id": teacher_id, "start_at": "2025-06-01T10:00:00Z", "end_at": "2025-06-01T12:00:00Z"}

        assert (await client.post(f"{API}/events", json=payload, headers=admin_headers)).status_code == 201
        clash = await client.post(
            f"{API}/events", json={**payload, "start_at": "2025-06-01T11:00:00Z", "end_at": "2025-06-01T13:00:00Z"}, headers=admin_headers
        )
        assert clash.json()["code"] == "SCHEDULE_CONFLICT"

    async def test_unscoped_events_never_conflict(self, client, admin_headers):
        payload = {"title": "Holiday", "start_at": "2025-06-01T00:00:00Z", "end_at": "2025-06-02T00:00:00Z"}
        assert (await client.post(f"{API}/events", json=payload, headers=admin_headers)).status_code == 201
        assert (await client.post(f"{API}/events", json=payload, headers=admin_headers)).status_code == 201

        listed = await client.get(
            f"{API}/events", params={"start": "2025-06-01T12:00:00Z", "end": "2025-06-01T13:00:00Z"}, headers=admin_headers
        )
        assert len(listed.json()["data"]) == 2
