"""Per-group waitlist with dense positions."""

import uuid

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.transitions import WaitlistAction, next_waitlist_status
from educrm.exceptions import DuplicateEntryException, InvalidOperationException
from educrm.models import EnrollmentState, GroupEnrollment, Student, WaitlistEntry, WaitlistStatus
from educrm.models.base import utcnow
from educrm.repository import Repository
from educrm.schemas.waitlist import WaitlistAdd
from educrm.services.audit_service import AuditService, snapshot
from educrm.services.group_service import GroupService
from educrm.utils.request_context import RequestContext


class WaitlistService:
    """Queue management for full groups.

    All position changes happen under the group row lock. Leaving ``waiting``
    clears the entry's position and shifts every later waiting entry up by
    one, so waiting positions stay 1..N.
    """

    def __init__(self, database: Database, audit: AuditService, groups: GroupService):
        self.database = database
        self.audit = audit
        self.groups = groups
        self.entries = Repository(WaitlistEntry, "Waitlist entry")

    async def add(self, ctx: RequestContext, group_id: uuid.UUID, data: WaitlistAdd) -> WaitlistEntry:
        async def _op(db: AsyncSession) -> WaitlistEntry:
            group = await self.groups.groups.get_for_update(db, group_id)

            first_name, last_name, email = data.first_name, data.last_name, data.email
            if data.student_id:
                student = await Repository(Student, "Student").get_or_404(db, data.student_id)
                first_name = first_name or student.first_name
                last_name = last_name or student.last_name
                email = email or student.email

                queued = await db.execute(
                    self.entries.query().where(
                        WaitlistEntry.group_id == group.id,
                        WaitlistEntry.student_id == student.id,
                        WaitlistEntry.status.in_([WaitlistStatus.WAITING.value, WaitlistStatus.OFFERED.value]),
                    )
                )
                if queued.first() is not None:
                    raise DuplicateEntryException("Student is already on this waitlist")

                enrolled = await db.execute(
                    select(GroupEnrollment.id).where(
                        GroupEnrollment.group_id == group.id,
                        GroupEnrollment.student_id == student.id,
                        GroupEnrollment.state == EnrollmentState.ENROLLED.value,
                        GroupEnrollment.deleted_at.is_(None),
                    )
                )
                if enrolled.first() is not None:
                    raise InvalidOperationException("Student is already enrolled in this group")

            result = await db.execute(
                select(func.max(WaitlistEntry.position)).where(
                    WaitlistEntry.group_id == group.id,
                    WaitlistEntry.status == WaitlistStatus.WAITING.value,
                    WaitlistEntry.deleted_at.is_(None),
                )
            )
            position = (result.scalar() or 0) + 1

            entry = WaitlistEntry(
                group_id=group.id,
                student_id=data.student_id,
                first_name=first_name,
                last_name=last_name,
                email=email.lower() if email else None,
                phone=data.phone,
                notes=data.notes,
                position=position,
                status=WaitlistStatus.WAITING.value,
                joined_at=utcnow(),
            )
            await self.entries.add(db, entry)
            self.audit.record(db, ctx, action="create", resource="waitlist", resource_id=entry.id, new_value=snapshot(entry))
            return entry

        return await self.database.run_in_transaction(ctx, _op)

    async def process(self, ctx: RequestContext, entry_id: uuid.UUID, action: WaitlistAction) -> WaitlistEntry:
        """Apply offer/accept/decline/expire to an entry.

        ``accept`` goes through the capacity-checked enrollment path; if the
        group is full the whole operation fails and nothing changes.
        """
        action = WaitlistAction(action)

        async def _op(db: AsyncSession) -> WaitlistEntry:
            probe = await self.entries.get_or_404(db, entry_id)
            group = await self.groups.groups.get_for_update(db, probe.group_id)
            # Re-read under the group lock
            result = await db.execute(
                self.entries.query()
                .where(WaitlistEntry.id == entry_id)
                .execution_options(populate_existing=True)
            )
            entry = result.scalar_one()

            target = next_waitlist_status(entry.status, action)
            old = snapshot(entry)
            now = utcnow()

            if action is WaitlistAction.ACCEPT:
                if entry.student_id is None:
                    student = await self.groups.find_or_create_student(
                        db,
                        first_name=entry.first_name or "",
                        last_name=entry.last_name or "",
                        email=entry.email,
                        phone=entry.phone,
                    )
                    entry.student_id = student.id
                await self.groups.enroll_locked(db, group, entry.student_id)

            left_position = entry.position if entry.status == WaitlistStatus.WAITING.value else None
            entry.status = target.value
            if action is WaitlistAction.OFFER:
                entry.offered_at = now
            else:
                entry.responded_at = now
            entry.position = None
            await db.flush()

            if left_position is not None:
                await db.execute(
                    update(WaitlistEntry)
                    .where(
                        WaitlistEntry.group_id == group.id,
                        WaitlistEntry.status == WaitlistStatus.WAITING.value,
                        WaitlistEntry.position > left_position,
                        WaitlistEntry.deleted_at.is_(None),
                    )
                    .values(position=WaitlistEntry.position - 1)
                    .execution_options(synchronize_session="fetch")
                )

            self.audit.record(
                db, ctx, action=action.value, resource="waitlist", resource_id=entry.id,
                old_value=old, new_value=snapshot(entry),
            )
            return entry

        return await self.database.run_in_transaction(ctx, _op)

    async def list_for_group(self, group_id: uuid.UUID) -> list[WaitlistEntry]:
        """Waiting entries by position, then offered, then everything else by join time."""
        rank = case(
            (WaitlistEntry.status == WaitlistStatus.WAITING.value, 0),
            (WaitlistEntry.status == WaitlistStatus.OFFERED.value, 1),
            else_=2,
        )
        async with self.database.session() as db:
            await self.groups.groups.get_or_404(db, group_id)
            return await self.entries.find_all(
                db,
                WaitlistEntry.group_id == group_id,
                order_by=(rank, WaitlistEntry.position, WaitlistEntry.joined_at),
            )
