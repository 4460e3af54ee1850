"""Timetable, exam and calendar event schemas."""

import uuid
from datetime import datetime, time
from decimal import Decimal

from pydantic import Field, model_validator

from educrm.schemas.common import BaseSchema


class TimetableEntryCreate(BaseSchema):
    group_id: uuid.UUID
    weekday: int = Field(..., ge=0, le=6, description="0 = Monday")
    start_time: time
    end_time: time
    room: str | None = Field(None, max_length=100)


class TimetableEntryResponse(BaseSchema):
    id: uuid.UUID
    group_id: uuid.UUID
    weekday: int
    start_time: time
    end_time: time
    room: str | None
    created_at: datetime


class ExamCreate(BaseSchema):
    title: str = Field(..., min_length=1, max_length=200)
    group_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    room: str | None = Field(None, max_length=100)
    total_marks: int = Field(100, ge=1)
    passing_marks: int = Field(50, ge=0)

    @model_validator(mode="after")
    def check_marks(self) -> "ExamCreate":
        if self.passing_marks > self.total_marks:
            raise ValueError("passing_marks cannot exceed total_marks")
        return self


class ExamResponse(BaseSchema):
    id: uuid.UUID
    title: str
    group_id: uuid.UUID
    course_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    room: str | None
    total_marks: int
    passing_marks: int
    status: str
    created_at: datetime


class ExamResultCreate(BaseSchema):
    student_id: uuid.UUID
    marks_obtained: Decimal = Field(..., ge=0)
    remarks: str | None = None


class ExamResultResponse(BaseSchema):
    id: uuid.UUID
    exam_id: uuid.UUID
    student_id: uuid.UUID
    marks_obtained: Decimal
    percentage: Decimal
    passed: bool
    remarks: str | None
    graded_by: uuid.UUID
    graded_at: datetime


class EventCreate(BaseSchema):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    location: str | None = Field(None, max_length=200)
    start_at: datetime
    end_at: datetime
    group_id: uuid.UUID | None = None
    course_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None


class EventResponse(BaseSchema):
    id: uuid.UUID
    title: str
    description: str | None
    location: str | None
    start_at: datetime
    end_at: datetime
    group_id: uuid.UUID | None
    course_id: uuid.UUID | None
    teacher_id: uuid.UUID | None
    created_by: uuid.UUID | None
    created_at: datetime
