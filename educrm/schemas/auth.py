"""Authentication-related Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from educrm.schemas.common import BaseSchema


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserSummary(BaseSchema):
    id: uuid.UUID
    email: str
    role: str
    first_name: str
    last_name: str


class LoginResponse(BaseModel):
    """Login response carrying the bearer token.

    The token is shown exactly once; only its digest is stored.
    """

    token: str
    token_type: str = "bearer"
    session_id: uuid.UUID
    expires_at: datetime
    user: UserSummary


class SessionResponse(BaseSchema):
    id: uuid.UUID
    issued_at: datetime
    expires_at: datetime
    last_seen_at: datetime
    ip_address: str | None
    user_agent: str | None
    is_current: bool = False


class RefreshResponse(BaseModel):
    session_id: uuid.UUID
    expires_at: datetime


class RevokeAllResponse(BaseModel):
    revoked: int
