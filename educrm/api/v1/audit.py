"""Audit log API endpoints."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from educrm.api.deps import get_container
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.audit import AuditLogResponse
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.services.audit_service import AuditFilter
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role

router = APIRouter()


@router.get("", response_model=APIResponse[list[AuditLogResponse]])
@require_role(Role.ADMIN, Role.STAFF)
async def list_audit_logs(
    user_id: uuid.UUID | None = Query(None),
    resource: str | None = Query(None),
    resource_id: str | None = Query(None),
    action: str | None = Query(None),
    created_from: datetime | None = Query(None, alias="from"),
    created_to: datetime | None = Query(None, alias="to"),
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List audit rows, newest first by default."""
    filters = AuditFilter(
        user_id=user_id,
        resource=resource,
        resource_id=resource_id,
        action=action,
        created_from=created_from,
        created_to=created_to,
    )
    page = await container.audit.list_logs(filters, params)
    return APIResponse(
        data=[AuditLogResponse.model_validate(row) for row in page.items],
        pagination=PaginationMeta.from_page(page),
    )
