"""Timetable API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.common import APIResponse
from educrm.schemas.schedule import TimetableEntryCreate, TimetableEntryResponse
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.post("", response_model=APIResponse[TimetableEntryResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_timetable_entry(
    data: TimetableEntryCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Add a weekly slot. Overlaps for the same group or room fail with SCHEDULE_CONFLICT."""
    entry = await container.schedule.create_timetable_entry(ctx, data)
    return APIResponse(data=TimetableEntryResponse.model_validate(entry), message="Timetable entry created")


@router.delete("/{entry_id}", response_model=APIResponse[None])
@require_role(Role.ADMIN, Role.STAFF)
async def delete_timetable_entry(
    entry_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    await container.schedule.delete_timetable_entry(ctx, entry_id)
    return APIResponse(message="Timetable entry deleted")
