"""Waitlist processing API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.domain.transitions import WaitlistAction
from educrm.models.user import Role
from educrm.schemas.common import APIResponse
from educrm.schemas.waitlist import WaitlistEntryResponse, WaitlistProcess
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.post("/{entry_id}/process", response_model=APIResponse[WaitlistEntryResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def process_waitlist_entry(
    entry_id: uuid.UUID,
    data: WaitlistProcess,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Offer, accept, decline or expire an entry.

    Accepting enrolls the candidate through the capacity check.
    """
    entry = await container.waitlist.process(ctx, entry_id, WaitlistAction(data.action))
    return APIResponse(data=WaitlistEntryResponse.model_validate(entry), message=f"Entry {entry.status}")
