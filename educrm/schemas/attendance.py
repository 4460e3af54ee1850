"""Attendance schemas."""

import uuid
from datetime import date as date_type
from datetime import datetime

from pydantic import Field

from educrm.models.attendance import AttendanceStatus
from educrm.schemas.common import BaseSchema


class AttendanceEntry(BaseSchema):
    student_id: uuid.UUID
    status: AttendanceStatus
    note: str | None = Field(None, max_length=1000)


class AttendanceBatchRequest(BaseSchema):
    """Upsert attendance for one group meeting. Applied all-or-nothing."""

    date: date_type
    entries: list[AttendanceEntry] = Field(..., min_length=1)


class AttendanceResponse(BaseSchema):
    id: uuid.UUID
    student_id: uuid.UUID
    group_id: uuid.UUID
    date: date_type
    status: str
    note: str | None
    recorded_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class AttendanceBatchResponse(BaseSchema):
    group_id: uuid.UUID
    date: date_type
    created: int
    updated: int
    records: list[AttendanceResponse]
