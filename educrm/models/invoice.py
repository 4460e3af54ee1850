"""Invoices and recurring invoice schedules."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from educrm.models.base import GUID, BaseModel, UTCDateTime


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


class RecurringInvoiceSchedule(BaseModel):
    """Billing plan that produces one invoice per cadence period.

    Generation locks this row, so ``next_due_date`` only moves forward.
    """

    __tablename__ = "recurring_invoice_schedules"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_schedules_amount_positive"),
        Index("idx_schedules_active_due", "active", "next_due_date"),
        Index("idx_schedules_student", "student_id"),
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cadence: Mapped[str] = mapped_column(String(20), nullable=False)
    anchor_date: Mapped[date] = mapped_column(Date, nullable=False)
    next_due_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    due_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_generated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)


class Invoice(BaseModel):
    """A bill issued to a student.

    ``(schedule_id, period_start)`` is unique, which makes recurring
    generation idempotent.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("schedule_id", "period_start", name="uq_invoice_schedule_period"),
        Index("idx_invoices_student", "student_id", "period_start"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    schedule_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("recurring_invoice_schedules.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InvoiceStatus.ISSUED.value)
