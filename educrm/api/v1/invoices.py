"""Recurring schedule and invoice generation API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.common import APIResponse
from educrm.schemas.invoice import (
    GenerateInvoicesRequest,
    GenerateInvoicesResponse,
    RecurringScheduleCreate,
    RecurringScheduleResponse,
)
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.post("/schedules", response_model=APIResponse[RecurringScheduleResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_schedule(
    data: RecurringScheduleCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    schedule = await container.invoices.create_schedule(ctx, data)
    return APIResponse(data=RecurringScheduleResponse.model_validate(schedule), message="Schedule created")


@router.post("/schedules/{schedule_id}/deactivate", response_model=APIResponse[RecurringScheduleResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def deactivate_schedule(
    schedule_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    schedule = await container.invoices.deactivate_schedule(ctx, schedule_id)
    return APIResponse(data=RecurringScheduleResponse.model_validate(schedule), message="Schedule deactivated")


@router.post("/generate", response_model=APIResponse[GenerateInvoicesResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def generate_invoices(
    data: GenerateInvoicesRequest,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Generate the invoices due in a window. Safe to rerun: existing periods are skipped."""
    outcome = await container.invoices.generate(ctx, data.from_date, data.to_date, data.schedule_id)
    return APIResponse(
        data=GenerateInvoicesResponse(
            generated=outcome.generated,
            skipped=outcome.skipped,
            failed=outcome.failed,
            schedules=outcome.schedules,
        ),
        message=f"{outcome.generated} invoice(s) generated",
    )
