"""Application API endpoints."""

import uuid

from fastapi import APIRouter, Body, Depends, Query

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.application import ApplicationStatus
from educrm.models.user import Role
from educrm.schemas.application import (
    ApplicationCreate,
    ApplicationEnroll,
    ApplicationResponse,
    ApplicationReview,
)
from educrm.schemas.common import APIResponse, PaginationMeta
from educrm.utils.pagination import PageParams, page_params
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.post("", response_model=APIResponse[ApplicationResponse], status_code=201)
async def submit_application(
    data: ApplicationCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Submit an application. No authentication required."""
    application = await container.applications.submit(ctx, data)
    return APIResponse(data=ApplicationResponse.model_validate(application), message="Application submitted")


@router.get("", response_model=APIResponse[list[ApplicationResponse]])
@require_role(Role.ADMIN, Role.STAFF)
async def list_applications(
    status: ApplicationStatus | None = Query(None, description="Filter by status"),
    params: PageParams = Depends(page_params),
    container: Container = Depends(get_container),
):
    """List applications. Searches applicant name and email."""
    page = await container.applications.list(params, status.value if status else None)
    return APIResponse(
        data=[ApplicationResponse.model_validate(a) for a in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.get("/{application_id}", response_model=APIResponse[ApplicationResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def get_application(
    application_id: uuid.UUID,
    container: Container = Depends(get_container),
):
    application = await container.applications.get(application_id)
    return APIResponse(data=ApplicationResponse.model_validate(application))


@router.post("/{application_id}/start-review", response_model=APIResponse[ApplicationResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def start_review(
    application_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    application = await container.applications.start_review(ctx, application_id)
    return APIResponse(data=ApplicationResponse.model_validate(application))


@router.post("/{application_id}/review", response_model=APIResponse[ApplicationResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def review_application(
    application_id: uuid.UUID,
    data: ApplicationReview,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Approve or reject a submitted or under-review application."""
    application = await container.applications.review(
        ctx, application_id, approve=data.decision == "approve", notes=data.notes
    )
    return APIResponse(
        data=ApplicationResponse.model_validate(application),
        message=f"Application {application.status}",
    )


@router.post("/{application_id}/withdraw", response_model=APIResponse[ApplicationResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def withdraw_application(
    application_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    application = await container.applications.withdraw(ctx, application_id)
    return APIResponse(data=ApplicationResponse.model_validate(application))


@router.post("/{application_id}/enroll", response_model=APIResponse[ApplicationResponse])
@require_role(Role.ADMIN, Role.STAFF)
async def enroll_application(
    application_id: uuid.UUID,
    data: ApplicationEnroll | None = Body(None),
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Enroll an approved applicant into a group.

    Defaults to the preferred group. A full group fails with CAPACITY_EXCEEDED
    and suggests the waitlist.
    """
    group_id = data.group_id if data else None
    application = await container.applications.enroll(ctx, application_id, group_id)
    return APIResponse(data=ApplicationResponse.model_validate(application), message="Applicant enrolled")
