"""Application schemas."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from educrm.schemas.common import BaseSchema


class ApplicationCreate(BaseSchema):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    course_id: uuid.UUID
    preferred_group_id: uuid.UUID | None = None
    notes: str | None = None


class ApplicationReview(BaseSchema):
    decision: Literal["approve", "reject"]
    notes: str | None = None


class ApplicationEnroll(BaseSchema):
    """Target group; defaults to the applicant's preferred group."""

    group_id: uuid.UUID | None = None


class ApplicationResponse(BaseSchema):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None
    course_id: uuid.UUID
    preferred_group_id: uuid.UUID | None
    status: str
    reviewer_id: uuid.UUID | None
    reviewed_at: datetime | None
    review_notes: str | None
    enrolled_student_id: uuid.UUID | None
    enrolled_group_id: uuid.UUID | None
    enrolled_at: datetime | None
    created_at: datetime
