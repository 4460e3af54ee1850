"""Invoice and recurring schedule schemas."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, field_validator, model_validator

from educrm.domain.cadence import Cadence
from educrm.schemas.common import BaseSchema


class RecurringScheduleCreate(BaseSchema):
    student_id: uuid.UUID
    group_id: uuid.UUID | None = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field("USD", min_length=3, max_length=3)
    description: str | None = None
    cadence: Cadence
    anchor_date: date
    end_date: date | None = None
    due_days: int = Field(30, ge=0, le=365)

    @field_validator("currency")
    @classmethod
    def normalise_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_end_date(self) -> "RecurringScheduleCreate":
        if self.end_date and self.end_date < self.anchor_date:
            raise ValueError("end_date must not precede anchor_date")
        return self


class RecurringScheduleResponse(BaseSchema):
    id: uuid.UUID
    student_id: uuid.UUID
    group_id: uuid.UUID | None
    amount: Decimal
    currency: str
    description: str | None
    cadence: str
    anchor_date: date
    next_due_date: date
    end_date: date | None
    due_days: int
    active: bool
    last_generated_at: datetime | None
    created_at: datetime


class GenerateInvoicesRequest(BaseSchema):
    from_date: date
    to_date: date
    schedule_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def check_window(self) -> "GenerateInvoicesRequest":
        if self.to_date < self.from_date:
            raise ValueError("to_date must not precede from_date")
        return self


class GenerateInvoicesResponse(BaseSchema):
    generated: int
    skipped: int
    failed: int
    schedules: int


class InvoiceResponse(BaseSchema):
    id: uuid.UUID
    invoice_number: str
    student_id: uuid.UUID
    schedule_id: uuid.UUID | None
    amount: Decimal
    currency: str
    description: str | None
    period_start: date
    period_end: date
    due_date: date
    status: str
    created_at: datetime
