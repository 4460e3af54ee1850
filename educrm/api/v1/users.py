"""User management API endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.schemas.user import UserCreate, UserResponse
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[UserResponse]])
@require_role(Role.ADMIN)
async def list_users(
    role: Role | None = Query(None, description="Filter by role"),
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List users. Searches email and name."""
    page = await container.users.list_users(params, role.value if role else None)
    return APIResponse(
        data=[UserResponse.model_validate(u) for u in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.post("", response_model=APIResponse[UserResponse], status_code=201)
@require_role(Role.ADMIN)
async def create_user(
    data: UserCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    user = await container.users.create_user(ctx, data)
    return APIResponse(data=UserResponse.model_validate(user), message="User created successfully")


@router.get("/{user_id}", response_model=APIResponse[UserResponse])
@require_role(Role.ADMIN)
async def get_user(
    user_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    user = await container.users.get_user(user_id)
    return APIResponse(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=APIResponse[None])
@require_role(Role.ADMIN)
async def delete_user(
    user_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Soft-delete a user and revoke all of their sessions."""
    await container.users.delete_user(ctx, user_id)
    return APIResponse(message="User deleted successfully")
