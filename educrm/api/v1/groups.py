"""Group, enrollment, attendance and waitlist API endpoints."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models import Group
from educrm.models.group import GroupState
from educrm.models.user import Role
from educrm.schemas.attendance import AttendanceBatchRequest, AttendanceBatchResponse, AttendanceResponse
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.schemas.group import (
    EnrollmentCreate,
    EnrollmentResponse,
    GroupCreate,
    GroupResponse,
    GroupUpdate,
)
from educrm.schemas.schedule import TimetableEntryResponse
from educrm.schemas.waitlist import WaitlistAdd, WaitlistEntryResponse
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


def _build_group_response(group: Group, current_enrollment: int) -> GroupResponse:
    """Build group response with the live enrollment count."""
    return GroupResponse(
        id=group.id,
        name=group.name,
        course_id=group.course_id,
        teacher_id=group.teacher_id,
        capacity=group.capacity,
        current_enrollment=current_enrollment,
        start_date=group.start_date,
        end_date=group.end_date,
        schedule=group.schedule or [],
        state=group.state,
        created_at=group.created_at,
        updated_at=group.updated_at,
    )


# === Groups ===

@router.get("", response_model=APIResponse[list[GroupResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_groups(
    course_id: uuid.UUID | None = Query(None, description="Filter by course"),
    state: GroupState | None = Query(None, description="Filter by state"),
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List groups. Searches name; sortable by created_at, name or start_date."""
    page, counts = await container.groups.list_groups(params, course_id, state.value if state else None)
    return APIResponse(
        data=[_build_group_response(g, counts.get(g.id, 0)) for g in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.post("", response_model=APIResponse[GroupResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_group(
    data: GroupCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    group, count = await container.groups.create_group(ctx, data)
    return APIResponse(data=_build_group_response(group, count), message="Group created successfully")


@router.get("/{group_id}", response_model=APIResponse[GroupResponse])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def get_group(
    group_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    group, count = await container.groups.get_group(group_id)
    return APIResponse(data=_build_group_response(group, count))


@router.patch("/{group_id}", response_model=APIResponse[GroupResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def update_group(
    group_id: uuid.UUID,
    data: GroupUpdate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    group, count = await container.groups.update_group(ctx, group_id, data)
    return APIResponse(data=_build_group_response(group, count), message="Group updated successfully")


@router.delete("/{group_id}", response_model=APIResponse[None])
@require_role(Role.ADMIN, Role.STAFF)
async def delete_group(
    group_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Soft-delete a group and detach its enrollments."""
    await container.groups.delete_group(ctx, group_id)
    return APIResponse(message="Group deleted successfully")


# === Enrollments ===

@router.get("/{group_id}/enrollments", response_model=APIResponse[list[EnrollmentResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_enrollments(
    group_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    edges = await container.groups.list_enrollments(group_id)
    return APIResponse(data=[EnrollmentResponse.model_validate(e) for e in edges])


@router.post("/{group_id}/enrollments", response_model=APIResponse[EnrollmentResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def enroll_student(
    group_id: uuid.UUID,
    data: EnrollmentCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Enroll an existing student. A full group fails with CAPACITY_EXCEEDED."""
    edge = await container.groups.enroll_student(ctx, group_id, data.student_id)
    return APIResponse(data=EnrollmentResponse.model_validate(edge), message="Student enrolled")


@router.delete("/{group_id}/enrollments/{student_id}", response_model=APIResponse[EnrollmentResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def withdraw_student(
    group_id: uuid.UUID,
    student_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    edge = await container.groups.withdraw_student(ctx, group_id, student_id)
    return APIResponse(data=EnrollmentResponse.model_validate(edge), message="Student withdrawn")


# === Attendance ===

@router.post("/{group_id}/attendance/batch", response_model=APIResponse[AttendanceBatchResponse])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def upsert_attendance(
    group_id: uuid.UUID,
    data: AttendanceBatchRequest,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Record attendance for one meeting. Re-submitting updates rows in place."""
    result = await container.attendance.upsert_batch(ctx, group_id, data)
    return APIResponse(
        data=AttendanceBatchResponse(
            group_id=result.group_id,
            date=result.date,
            created=result.created,
            updated=result.updated,
            records=[AttendanceResponse.model_validate(r) for r in result.records],
        ),
        message=f"Attendance recorded: {result.created} created, {result.updated} updated",
    )


@router.get("/{group_id}/attendance", response_model=APIResponse[list[AttendanceResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_attendance(
    group_id: uuid.UUID,
    date_from: date | None = Query(None, description="First date (inclusive)"),
    date_to: date | None = Query(None, description="Last date (inclusive)"),
    container: Container = Depends(get_container),
):
    records = await container.attendance.list_for_group(group_id, date_from, date_to)
    return APIResponse(data=[AttendanceResponse.model_validate(r) for r in records])


# === Timetable ===

@router.get("/{group_id}/timetable", response_model=APIResponse[list[TimetableEntryResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER, Role.STUDENT)
async def list_timetable(
    group_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    entries = await container.schedule.list_timetable(group_id)
    return APIResponse(data=[TimetableEntryResponse.model_validate(e) for e in entries])


# === Waitlist ===

@router.get("/{group_id}/waitlist", response_model=APIResponse[list[WaitlistEntryResponse]])
@require_role(Role.ADMIN, Role.STAFF)
async def list_waitlist(
    group_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    """Waiting entries by position first, then everything else."""
    entries = await container.waitlist.list_for_group(group_id)
    return APIResponse(data=[WaitlistEntryResponse.model_validate(e) for e in entries])


@router.post("/{group_id}/waitlist", response_model=APIResponse[WaitlistEntryResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def add_to_waitlist(
    group_id: uuid.UUID,
    data: WaitlistAdd,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    entry = await container.waitlist.add(ctx, group_id, data)
    return APIResponse(
        data=WaitlistEntryResponse.model_validate(entry),
        message=f"Added to waitlist at position {entry.position}",
    )
