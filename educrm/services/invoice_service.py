"""Recurring invoice schedules and idempotent invoice generation."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.cadence import Cadence, due_dates, next_due_after
from educrm.exceptions import InvalidOperationException, NotFoundException
from educrm.models import Group, Invoice, InvoiceStatus, RecurringInvoiceSchedule, Student
from educrm.models.base import utcnow
from educrm.repository import Repository
from educrm.schemas.invoice import RecurringScheduleCreate
from educrm.services.audit_service import AuditService, snapshot
from educrm.utils.pagination import Page, PageParams
from educrm.utils.request_context import RequestContext

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    generated: int = 0
    skipped: int = 0
    failed: int = 0
    schedules: int = 0


def invoice_number(schedule_id: uuid.UUID, period_start: date) -> str:
    """Deterministic invoice number for a schedule period."""
    return f"INV-{period_start:%Y%m%d}-{schedule_id.hex[-10:].upper()}"


class InvoiceService:
    """Recurring billing.

    Generation is keyed by ``(schedule_id, period_start)``: rerunning it over
    the same window skips every period that already has an invoice.
    """

    def __init__(self, database: Database, audit: AuditService):
        self.database = database
        self.audit = audit
        self.schedules = Repository(RecurringInvoiceSchedule, "Recurring schedule")
        self.invoices = Repository(Invoice, "Invoice")

    async def create_schedule(self, ctx: RequestContext, data: RecurringScheduleCreate) -> RecurringInvoiceSchedule:
        async def _op(db: AsyncSession) -> RecurringInvoiceSchedule:
            await Repository(Student, "Student").get_or_404(db, data.student_id)
            if data.group_id:
                await Repository(Group, "Group").get_or_404(db, data.group_id)
            schedule = RecurringInvoiceSchedule(
                student_id=data.student_id,
                group_id=data.group_id,
                amount=data.amount,
                currency=data.currency,
                description=data.description,
                cadence=data.cadence.value,
                anchor_date=data.anchor_date,
                next_due_date=data.anchor_date,
                end_date=data.end_date,
                due_days=data.due_days,
                active=True,
            )
            await self.schedules.add(db, schedule)
            self.audit.record(
                db, ctx, action="create", resource="invoice_schedule",
                resource_id=schedule.id, new_value=snapshot(schedule),
            )
            return schedule

        return await self.database.run_in_transaction(ctx, _op)

    async def deactivate_schedule(self, ctx: RequestContext, schedule_id: uuid.UUID) -> RecurringInvoiceSchedule:
        async def _op(db: AsyncSession) -> RecurringInvoiceSchedule:
            schedule = await self.schedules.get_for_update(db, schedule_id)
            if not schedule.active:
                raise InvalidOperationException("Schedule is already inactive")
            schedule.active = False
            await db.flush()
            self.audit.record(
                db, ctx, action="deactivate", resource="invoice_schedule", resource_id=schedule.id,
                old_value={"active": True}, new_value={"active": False},
            )
            return schedule

        return await self.database.run_in_transaction(ctx, _op)

    async def list_student_schedules(self, student_id: uuid.UUID) -> list[RecurringInvoiceSchedule]:
        async with self.database.session() as db:
            await Repository(Student, "Student").get_or_404(db, student_id)
            return await self.schedules.find_all(
                db,
                RecurringInvoiceSchedule.student_id == student_id,
                order_by=(RecurringInvoiceSchedule.created_at,),
            )

    async def list_student_invoices(self, student_id: uuid.UUID, params: PageParams) -> Page[Invoice]:
        async with self.database.session() as db:
            await Repository(Student, "Student").get_or_404(db, student_id)
            return await self.invoices.page(
                db,
                params,
                Invoice.student_id == student_id,
                search_fields=(Invoice.invoice_number, Invoice.description),
                sort_fields={
                    "created_at": Invoice.created_at,
                    "period_start": Invoice.period_start,
                    "due_date": Invoice.due_date,
                },
            )

    async def generate(
        self,
        ctx: RequestContext,
        from_date: date,
        to_date: date,
        schedule_id: uuid.UUID | None = None,
    ) -> GenerationResult:
        """Create the invoices due in ``[from_date, to_date]`` for active schedules.

        Schedule rows are locked for the duration, so concurrent runs over the
        same schedules serialise and ``next_due_date`` only moves forward.
        """

        async def _op(db: AsyncSession) -> GenerationResult:
            query = self.schedules.query().where(RecurringInvoiceSchedule.active.is_(True))
            if schedule_id:
                query = query.where(RecurringInvoiceSchedule.id == schedule_id)
            result = await db.execute(query.order_by(RecurringInvoiceSchedule.id).with_for_update())
            schedules = list(result.scalars().all())
            if schedule_id and not schedules:
                raise NotFoundException("Recurring schedule")

            outcome = GenerationResult(schedules=len(schedules))
            now = utcnow()
            for schedule in schedules:
                try:
                    cadence = Cadence(schedule.cadence)
                except ValueError:
                    logger.warning(f"Schedule {schedule.id} has unknown cadence {schedule.cadence!r}")
                    outcome.failed += 1
                    continue
                if schedule.amount is None or schedule.amount <= 0:
                    logger.warning(f"Schedule {schedule.id} has a non-positive amount")
                    outcome.failed += 1
                    continue

                dates = due_dates(cadence, schedule.anchor_date, from_date, to_date, until=schedule.end_date)
                if not dates:
                    continue

                existing = await db.execute(
                    select(Invoice.period_start).where(
                        Invoice.schedule_id == schedule.id,
                        Invoice.period_start.in_(dates),
                    )
                )
                already = set(existing.scalars().all())

                for due in dates:
                    if due in already:
                        outcome.skipped += 1
                        continue
                    following = next_due_after(cadence, schedule.anchor_date, due)
                    db.add(
                        Invoice(
                            invoice_number=invoice_number(schedule.id, due),
                            student_id=schedule.student_id,
                            schedule_id=schedule.id,
                            amount=schedule.amount,
                            currency=schedule.currency,
                            description=schedule.description,
                            period_start=due,
                            period_end=following - timedelta(days=1),
                            due_date=due + timedelta(days=schedule.due_days),
                            status=InvoiceStatus.ISSUED.value,
                        )
                    )
                    outcome.generated += 1

                advanced = next_due_after(cadence, schedule.anchor_date, dates[-1])
                if advanced > schedule.next_due_date:
                    schedule.next_due_date = advanced
                schedule.last_generated_at = now

            await db.flush()
            self.audit.record(
                db,
                ctx,
                action="generate",
                resource="invoice",
                resource_id=schedule_id or "",
                new_value={
                    "from_date": from_date,
                    "to_date": to_date,
                    "generated": outcome.generated,
                    "skipped": outcome.skipped,
                    "failed": outcome.failed,
                },
            )
            return outcome

        outcome = await self.database.run_in_transaction(ctx, _op)
        logger.info(
            f"Invoice generation {from_date}..{to_date}: generated={outcome.generated} "
            f"skipped={outcome.skipped} failed={outcome.failed}"
        )
        return outcome
