"""Course applications."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, BaseModel, UTCDateTime


class ApplicationStatus(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    ENROLLED = "enrolled"
    WITHDRAWN = "withdrawn"


class Application(BaseModel):
    """An applicant's request to join a course."""

    __tablename__ = "applications"
    __table_args__ = (
        Index("idx_applications_status", "status"),
        Index("idx_applications_course", "course_id"),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False
    )
    preferred_group_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApplicationStatus.SUBMITTED.value
    )
    reviewer_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    enrolled_student_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("students.id", ondelete="SET NULL"), nullable=True
    )
    enrolled_group_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True
    )
    enrolled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
