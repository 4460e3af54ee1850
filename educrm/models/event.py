"""Calendar events."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, BaseModel, UTCDateTime


class CalendarEvent(BaseModel):
    """A calendar entry scoped to any combination of group, course and teacher."""

    __tablename__ = "calendar_events"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_events_time_order"),
        Index("idx_events_start", "start_at"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="CASCADE"), nullable=True
    )
    course_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("courses.id", ondelete="CASCADE"), nullable=True
    )
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=True
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
