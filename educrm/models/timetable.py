"""Weekly timetable slots."""

import uuid
from datetime import time

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, BaseModel


class TimetableEntry(BaseModel):
    """A recurring weekly slot for a group. Weekday 0 is Monday."""

    __tablename__ = "timetable_entries"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_timetable_time_order"),
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_timetable_weekday"),
        Index("idx_timetable_group_day", "group_id", "weekday"),
        Index("idx_timetable_room_day", "room", "weekday"),
    )

    group_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
