"""Student API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.catalog import StudentCreate, StudentResponse
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.schemas.invoice import InvoiceResponse, RecurringScheduleResponse
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[StudentResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_students(
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List students. Searches first name, last name and email."""
    page = await container.catalog.list_students(params)
    return APIResponse(
        data=[StudentResponse.model_validate(s) for s in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.post("", response_model=APIResponse[StudentResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_student(
    data: StudentCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    student = await container.catalog.create_student(ctx, data)
    return APIResponse(data=StudentResponse.model_validate(student), message="Student created successfully")


@router.get("/{student_id}", response_model=APIResponse[StudentResponse])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def get_student(
    student_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    student = await container.catalog.get_student(student_id)
    return APIResponse(data=StudentResponse.model_validate(student))


@router.get("/{student_id}/invoices", response_model=APIResponse[list[InvoiceResponse]])
@require_role(Role.ADMIN, Role.STAFF)
async def list_student_invoices(
    student_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List a student's invoices. Sortable by created_at, period_start or due_date."""
    page = await container.invoices.list_student_invoices(student_id, params)
    return APIResponse(
        data=[InvoiceResponse.model_validate(i) for i in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.get("/{student_id}/invoice-schedules", response_model=APIResponse[list[RecurringScheduleResponse]])
@require_role(Role.ADMIN, Role.STAFF)
async def list_student_schedules(
    student_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    schedules = await container.invoices.list_student_schedules(student_id)
    return APIResponse(data=[RecurringScheduleResponse.model_validate(s) for s in schedules])
