"""Calendar event API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.common import APIResponse
from educrm.schemas.schedule import EventCreate, EventResponse
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[EventResponse]])
async def list_events(
    start: datetime | None = Query(None, description="Only events ending after this instant"),
    end: datetime | None = Query(None, description="Only events starting before this instant"),
    container: Container = Depends(get_container),
):
    events = await container.schedule.list_events(start, end)
    return APIResponse(data=[EventResponse.model_validate(e) for e in events])


@router.post("", response_model=APIResponse[EventResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def create_event(
    data: EventCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    event = await container.schedule.create_event(ctx, data)
    return APIResponse(data=EventResponse.model_validate(event), message="Event created")
