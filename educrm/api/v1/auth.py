"""Authentication and session API endpoints."""

import uuid

from fastapi import APIRouter, Depends

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshResponse,
    RevokeAllResponse,
    SessionResponse,
    UserSummary,
)
from educrm.schemas.common import APIResponse
from educrm.schemas.user import UserResponse
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.post("/login", response_model=APIResponse[LoginResponse])
async def login(
    data: LoginRequest,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Authenticate with email and password and open a session.

    The returned token is shown once and must be sent as
    ``Authorization: Bearer <token>``.
    """
    issued = await container.sessions.login(ctx, data.email, data.password)
    return APIResponse(
        data=LoginResponse(
            token=issued.token,
            session_id=issued.session.id,
            expires_at=issued.session.expires_at,
            user=UserSummary.model_validate(issued.user),
        ),
        message=f"Welcome back, {issued.user.first_name}!",
    )


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Revoke the current session."""
    await container.sessions.logout(ctx)
    return APIResponse(message="Logged out successfully")


@router.get("/sessions", response_model=APIResponse[list[SessionResponse]])
async def list_sessions(
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """List the current user's active sessions."""
    principal = ctx.require_principal()
    sessions = await container.sessions.list_active(principal)
    data = []
    for session in sessions:
        item = SessionResponse.model_validate(session)
        item.is_current = session.id == principal.session_id
        data.append(item)
    return APIResponse(data=data)


@router.delete("/sessions/{session_id}", response_model=APIResponse[None])
async def revoke_session(
    session_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    await container.sessions.revoke(ctx, session_id)
    return APIResponse(message="Session revoked")


@router.post("/sessions/revoke-all", response_model=APIResponse[RevokeAllResponse])
async def revoke_all_sessions(
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Revoke every active session of the current user, including this one."""
    count = await container.sessions.revoke_all(ctx)
    return APIResponse(data=RevokeAllResponse(revoked=count), message=f"{count} session(s) revoked")


@router.post("/refresh", response_model=APIResponse[RefreshResponse])
async def refresh(
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    session = await container.sessions.refresh(ctx)
    return APIResponse(data=RefreshResponse(session_id=session.id, expires_at=session.expires_at))


@router.get("/me", response_model=APIResponse[UserResponse])
async def get_current_user_profile(
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Get the current user's profile."""
    user = await container.sessions.get_user(ctx.require_principal())
    return APIResponse(data=UserResponse.model_validate(user))
