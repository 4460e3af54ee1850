"""Course API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.catalog import CourseCreate, CourseResponse
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[CourseResponse]])
async def list_courses(
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List courses. Searches name and code."""
    page = await container.catalog.list_courses(params)
    return APIResponse(
        data=[CourseResponse.model_validate(c) for c in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.post("", response_model=APIResponse[CourseResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF)
async def create_course(
    data: CourseCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    course = await container.catalog.create_course(ctx, data)
    return APIResponse(data=CourseResponse.model_validate(course), message="Course created successfully")


@router.get("/{course_id}", response_model=APIResponse[CourseResponse])
async def get_course(
    course_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    course = await container.catalog.get_course(course_id)
    return APIResponse(data=CourseResponse.model_validate(course))


@router.delete("/{course_id}", response_model=APIResponse[None])
@require_role(Role.ADMIN, Role.STAFF)
async def delete_course(
    course_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Delete a course. Fails with RESOURCE_IN_USE while groups reference it."""
    await container.catalog.delete_course(ctx, course_id)
    return APIResponse(message="Course deleted successfully")
