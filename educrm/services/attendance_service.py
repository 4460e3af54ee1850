"""Attendance service: batch upsert per group meeting."""

import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.invariants import find_duplicates
from educrm.exceptions import InvalidOperationException, ValidationException
from educrm.models import Attendance, EnrollmentState, GroupEnrollment
from educrm.models.base import utcnow
from educrm.schemas.attendance import AttendanceBatchRequest
from educrm.services.audit_service import AuditService
from educrm.services.group_service import GroupService
from educrm.utils.request_context import RequestContext


@dataclass
class AttendanceBatchResult:
    group_id: uuid.UUID
    date: date
    created: int
    updated: int
    records: list[Attendance]


class AttendanceService:
    """Service for managing attendance records."""

    def __init__(self, database: Database, audit: AuditService, groups: GroupService):
        self.database = database
        self.audit = audit
        self.groups = groups

    async def upsert_batch(
        self,
        ctx: RequestContext,
        group_id: uuid.UUID,
        data: AttendanceBatchRequest,
    ) -> AttendanceBatchResult:
        """Insert or update one row per (student, group, date); all or nothing.

        Raises:
            ValidationException: the same student appears twice
            InvalidOperationException: a student is not enrolled in the group
        """
        student_ids = [entry.student_id for entry in data.entries]
        duplicates = find_duplicates(student_ids)
        if duplicates:
            raise ValidationException(
                [{"field": "entries", "message": f"duplicate student_id {sid}"} for sid in duplicates]
            )

        async def _op(db: AsyncSession) -> AttendanceBatchResult:
            group = await self.groups.groups.get_for_update(db, group_id)

            result = await db.execute(
                select(GroupEnrollment.student_id).where(
                    GroupEnrollment.group_id == group.id,
                    GroupEnrollment.student_id.in_(student_ids),
                    GroupEnrollment.state == EnrollmentState.ENROLLED.value,
                    GroupEnrollment.deleted_at.is_(None),
                )
            )
            enrolled = set(result.scalars().all())
            missing = [sid for sid in student_ids if sid not in enrolled]
            if missing:
                raise InvalidOperationException(
                    "Some students are not enrolled in this group",
                    details={"student_ids": [str(sid) for sid in missing]},
                )

            result = await db.execute(
                select(Attendance).where(
                    Attendance.group_id == group.id,
                    Attendance.date == data.date,
                    Attendance.student_id.in_(student_ids),
                )
            )
            existing = {record.student_id: record for record in result.scalars().all()}

            now = utcnow()
            created = updated = 0
            records = []
            for entry in data.entries:
                record = existing.get(entry.student_id)
                if record is None:
                    record = Attendance(
                        student_id=entry.student_id,
                        group_id=group.id,
                        date=data.date,
                        status=entry.status.value,
                        note=entry.note,
                        recorded_by=ctx.user_id,
                    )
                    db.add(record)
                    created += 1
                else:
                    record.status = entry.status.value
                    record.note = entry.note
                    record.recorded_by = ctx.user_id
                    record.deleted_at = None
                    record.updated_at = now
                    updated += 1
                records.append(record)
            await db.flush()

            self.audit.record(
                db,
                ctx,
                action="upsert",
                resource="attendance",
                resource_id=group.id,
                new_value={
                    "date": data.date,
                    "created": created,
                    "updated": updated,
                    "entries": [
                        {"student_id": e.student_id, "status": e.status, "note": e.note}
                        for e in data.entries
                    ],
                },
            )
            return AttendanceBatchResult(group.id, data.date, created, updated, records)

        return await self.database.run_in_transaction(ctx, _op)

    async def list_for_group(
        self,
        group_id: uuid.UUID,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Attendance]:
        async with self.database.session() as db:
            await self.groups.groups.get_or_404(db, group_id)
            query = select(Attendance).where(
                Attendance.group_id == group_id,
                Attendance.deleted_at.is_(None),
            )
            if date_from:
                query = query.where(Attendance.date >= date_from)
            if date_to:
                query = query.where(Attendance.date <= date_to)
            query = query.order_by(Attendance.date.desc(), Attendance.student_id)
            result = await db.execute(query)
            return list(result.scalars().all())
