"""Append-only audit trail."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from uuid_extensions import uuid7

from educrm.models.base import GUID, JSONB, Base, UTCDateTime, utcnow


class AuditLog(Base):
    """One row per committed mutation or auth event. Never updated.

    ``seq`` is assigned by the database and breaks ties between rows that share
    a ``created_at`` value.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_created", "created_at", "seq"),
        Index("idx_audit_resource", "resource", "resource_id"),
        Index("idx_audit_user", "user_id"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False, unique=True, default=uuid7)
    user_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB(), nullable=True)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB(), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    error_msg: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<AuditLog {self.resource}.{self.action} {self.resource_id}>"
