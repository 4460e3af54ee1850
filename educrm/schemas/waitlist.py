"""Waitlist schemas."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, model_validator

from educrm.schemas.common import BaseSchema


class WaitlistAdd(BaseSchema):
    """Either an existing student or prospect contact details."""

    student_id: uuid.UUID | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    notes: str | None = None

    @model_validator(mode="after")
    def check_candidate(self) -> "WaitlistAdd":
        if self.student_id is None and not (self.first_name and self.last_name):
            raise ValueError("student_id or first_name and last_name are required")
        return self


class WaitlistProcess(BaseSchema):
    action: Literal["offer", "accept", "decline", "expire"]


class WaitlistEntryResponse(BaseSchema):
    id: uuid.UUID
    group_id: uuid.UUID
    student_id: uuid.UUID | None
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    notes: str | None
    position: int | None
    status: str
    joined_at: datetime
    offered_at: datetime | None
    responded_at: datetime | None
