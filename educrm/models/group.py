"""Course group and the group/student enrollment edge."""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, JSONB, BaseModel, UTCDateTime


class GroupState(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollmentState(str, Enum):
    ENROLLED = "enrolled"
    WITHDRAWN = "withdrawn"
    COMPLETED = "completed"


class Group(BaseModel):
    """A scheduled run of a course with a seat limit.

    The number of ``enrolled`` edges never exceeds ``capacity``. Writers that
    change the count lock this row first.
    """

    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_groups_capacity_positive"),
        Index("idx_groups_course", "course_id"),
        Index("idx_groups_teacher", "teacher_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False
    )
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # [{"weekday": 0, "start_time": "09:00", "end_time": "10:30"}, ...]
    schedule: Mapped[list[dict[str, Any]]] = mapped_column(JSONB(), nullable=False, default=list)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default=GroupState.ACTIVE.value)

    def __repr__(self) -> str:
        return f"<Group {self.name} cap={self.capacity}>"


class GroupEnrollment(BaseModel):
    """Edge between a group and a student. Owned by neither endpoint."""

    __tablename__ = "group_enrollments"
    __table_args__ = (
        UniqueConstraint("group_id", "student_id", name="uq_enrollment_group_student"),
        Index("idx_enrollments_group_state", "group_id", "state"),
        Index("idx_enrollments_student", "student_id"),
    )

    group_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    state: Mapped[str] = mapped_column(String(20), nullable=False, default=EnrollmentState.ENROLLED.value)
    enrolled_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    withdrawn_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
