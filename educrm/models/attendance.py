"""Attendance tracking model."""

import datetime
import uuid
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, BaseModel


class AttendanceStatus(str, Enum):
    """Attendance status options."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Attendance(BaseModel):
    """Attendance of one student at one group meeting."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "group_id", "date", name="uq_attendance_student_group_date"),
        Index("idx_attendance_group_date", "group_id", "date"),
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
