"""Course, teacher and student schemas."""

import uuid
from datetime import date, datetime

from pydantic import EmailStr, Field

from educrm.schemas.common import BaseSchema


class CourseCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    description: str | None = None


class CourseResponse(BaseSchema):
    id: uuid.UUID
    name: str
    code: str
    description: str | None
    is_active: bool
    created_at: datetime


class TeacherCreate(BaseSchema):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    specialization: str | None = Field(None, max_length=200)


class TeacherResponse(BaseSchema):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    specialization: str | None
    is_active: bool
    created_at: datetime


class StudentCreate(BaseSchema):
    """Schema for creating a new student."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    date_of_birth: date | None = None
    notes: str | None = None


class StudentResponse(BaseSchema):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    date_of_birth: date | None
    is_active: bool
    created_at: datetime
