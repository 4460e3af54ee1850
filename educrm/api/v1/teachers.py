"""Teacher API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.catalog import TeacherCreate, TeacherResponse
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[TeacherResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_teachers(
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    page = await container.catalog.list_teachers(params)
    return APIResponse(
        data=[TeacherResponse.model_validate(t) for t in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.post("", response_model=APIResponse[TeacherResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_teacher(
    data: TeacherCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    teacher = await container.catalog.create_teacher(ctx, data)
    return APIResponse(data=TeacherResponse.model_validate(teacher), message="Teacher created successfully")


@router.get("/{teacher_id}", response_model=APIResponse[TeacherResponse])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def get_teacher(
    teacher_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    teacher = await container.catalog.get_teacher(teacher_id)
    return APIResponse(data=TeacherResponse.model_validate(teacher))
