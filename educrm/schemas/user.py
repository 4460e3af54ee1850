"""User management schemas."""

import uuid
from datetime import datetime

from pydantic import EmailStr, Field, model_validator

from educrm.models.user import Role
from educrm.schemas.common import BaseSchema


class UserCreate(BaseSchema):
    """Create a user account.

    Teacher accounts must reference a teacher and student accounts a student.
    Other roles must reference neither.
    """

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: Role
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    teacher_id: uuid.UUID | None = None
    student_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def check_profile_links(self) -> "UserCreate":
        if self.role == Role.TEACHER and (self.teacher_id is None or self.student_id is not None):
            raise ValueError("teacher accounts require teacher_id and no student_id")
        if self.role == Role.STUDENT and (self.student_id is None or self.teacher_id is not None):
            raise ValueError("student accounts require student_id and no teacher_id")
        if self.role in (Role.ADMIN, Role.STAFF) and (self.teacher_id or self.student_id):
            raise ValueError("admin and staff accounts cannot link a teacher or student")
        return self


class UserResponse(BaseSchema):
    id: uuid.UUID
    email: str
    role: str
    first_name: str
    last_name: str
    phone: str | None
    is_active: bool
    teacher_id: uuid.UUID | None
    student_id: uuid.UUID | None
    last_login_at: datetime | None
    created_at: datetime
