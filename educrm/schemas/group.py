"""Group and enrollment schemas."""

import uuid
from datetime import date, datetime, time

from pydantic import Field, model_validator

from educrm.models.group import GroupState
from educrm.schemas.common import BaseSchema


class ScheduleSlot(BaseSchema):
    """A weekly meeting slot. Weekday 0 is Monday."""

    weekday: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_order(self) -> "ScheduleSlot":
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be later than start_time")
        return self


class GroupCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    course_id: uuid.UUID
    teacher_id: uuid.UUID | None = None
    capacity: int = Field(..., ge=1)
    start_date: date | None = None
    end_date: date | None = None
    schedule: list[ScheduleSlot] = Field(default_factory=list)
    state: GroupState = GroupState.ACTIVE

    @model_validator(mode="after")
    def check_dates(self) -> "GroupCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class GroupUpdate(BaseSchema):
    name: str | None = Field(None, min_length=1, max_length=200)
    teacher_id: uuid.UUID | None = None
    capacity: int | None = Field(None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    schedule: list[ScheduleSlot] | None = None
    state: GroupState | None = None


class GroupResponse(BaseSchema):
    id: uuid.UUID
    name: str
    course_id: uuid.UUID
    teacher_id: uuid.UUID | None
    capacity: int
    current_enrollment: int
    start_date: date | None
    end_date: date | None
    schedule: list[ScheduleSlot]
    state: str
    created_at: datetime
    updated_at: datetime


class EnrollmentCreate(BaseSchema):
    student_id: uuid.UUID


class EnrollmentResponse(BaseSchema):
    id: uuid.UUID
    group_id: uuid.UUID
    student_id: uuid.UUID
    state: str
    enrolled_at: datetime
    withdrawn_at: datetime | None
