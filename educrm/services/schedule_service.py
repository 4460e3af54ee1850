"""Timetables, exams and calendar events with slot-conflict detection.

Two slots conflict when they share a scope key and their half-open intervals
overlap. Slots that only touch do not conflict.
"""

import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.invariants import find_overlap, validate_interval
from educrm.exceptions import InvalidOperationException, ScheduleConflictException, ValidationException
from educrm.models import CalendarEvent, EnrollmentState, Exam, ExamResult, ExamStatus, GroupEnrollment, TimetableEntry
from educrm.models.base import as_utc, utcnow
from educrm.repository import Repository
from educrm.schemas.schedule import EventCreate, ExamCreate, ExamResultCreate, TimetableEntryCreate
from educrm.services.audit_service import AuditService, snapshot
from educrm.services.group_service import GroupService
from educrm.utils.request_context import RequestContext


class ScheduleService:
    """Conflict-checked writes for every kind of time slot."""

    def __init__(self, database: Database, audit: AuditService, groups: GroupService):
        self.database = database
        self.audit = audit
        self.groups = groups
        self.timetable = Repository(TimetableEntry, "Timetable entry")
        self.exams = Repository(Exam, "Exam")
        self.events = Repository(CalendarEvent, "Event")

    # === Timetable ===

    async def create_timetable_entry(self, ctx: RequestContext, data: TimetableEntryCreate) -> TimetableEntry:
        """Scope is (group, weekday) and, when a room is set, (room, weekday)."""
        validate_interval(data.start_time, data.end_time, field="end_time")
        room = data.room.strip().lower() if data.room else None

        async def _op(db: AsyncSession) -> TimetableEntry:
            group = await self.groups.groups.get_for_update(db, data.group_id)

            scope = [TimetableEntry.group_id == group.id]
            if room:
                scope.append(TimetableEntry.room == room)
            result = await db.execute(
                self.timetable.query().where(
                    TimetableEntry.weekday == data.weekday,
                    or_(*scope),
                    TimetableEntry.start_time < data.end_time,
                    TimetableEntry.end_time > data.start_time,
                )
            )
            clash = find_overlap(
                data.start_time,
                data.end_time,
                ((e.id, e.start_time, e.end_time) for e in result.scalars().all()),
            )
            if clash is not None:
                raise ScheduleConflictException("Timetable entry", clash)

            entry = TimetableEntry(
                group_id=group.id,
                weekday=data.weekday,
                start_time=data.start_time,
                end_time=data.end_time,
                room=room,
            )
            await self.timetable.add(db, entry)
            self.audit.record(db, ctx, action="create", resource="timetable_entry", resource_id=entry.id, new_value=snapshot(entry))
            return entry

        return await self.database.run_in_transaction(ctx, _op)

    async def list_timetable(self, group_id: uuid.UUID) -> list[TimetableEntry]:
        async with self.database.session() as db:
            await self.groups.groups.get_or_404(db, group_id)
            return await self.timetable.find_all(
                db,
                TimetableEntry.group_id == group_id,
                order_by=(TimetableEntry.weekday, TimetableEntry.start_time),
            )

    async def delete_timetable_entry(self, ctx: RequestContext, entry_id: uuid.UUID) -> None:
        async def _op(db: AsyncSession) -> None:
            entry = await self.timetable.get_for_update(db, entry_id)
            old = snapshot(entry)
            await self.timetable.soft_delete(db, entry)
            self.audit.record(db, ctx, action="delete", resource="timetable_entry", resource_id=entry.id, old_value=old)

        await self.database.run_in_transaction(ctx, _op)

    # === Exams ===

    async def create_exam(self, ctx: RequestContext, data: ExamCreate) -> Exam:
        """Scope is the exam's group and, through the group, its course."""
        start_at, end_at = as_utc(data.start_at), as_utc(data.end_at)
        validate_interval(start_at, end_at, field="end_at")

        async def _op(db: AsyncSession) -> Exam:
            group = await self.groups.groups.get_for_update(db, data.group_id)

            result = await db.execute(
                self.exams.query().where(
                    Exam.status != ExamStatus.CANCELLED.value,
                    or_(Exam.group_id == group.id, Exam.course_id == group.course_id),
                    Exam.start_at < end_at,
                    Exam.end_at > start_at,
                )
            )
            clash = find_overlap(start_at, end_at, ((e.id, e.start_at, e.end_at) for e in result.scalars().all()))
            if clash is not None:
                raise ScheduleConflictException("Exam", clash)

            exam = Exam(
                title=data.title,
                group_id=group.id,
                course_id=group.course_id,
                start_at=start_at,
                end_at=end_at,
                room=data.room,
                total_marks=data.total_marks,
                passing_marks=data.passing_marks,
                status=ExamStatus.SCHEDULED.value,
            )
            await self.exams.add(db, exam)
            self.audit.record(db, ctx, action="create", resource="exam", resource_id=exam.id, new_value=snapshot(exam))
            return exam

        return await self.database.run_in_transaction(ctx, _op)

    async def list_exams(self, group_id: uuid.UUID | None = None) -> list[Exam]:
        criteria = [Exam.group_id == group_id] if group_id else []
        async with self.database.session() as db:
            return await self.exams.find_all(db, *criteria, order_by=(Exam.start_at,))

    async def record_result(self, ctx: RequestContext, exam_id: uuid.UUID, data: ExamResultCreate) -> ExamResult:
        """Grade a student. The grader is always the authenticated principal."""
        grader = ctx.require_principal()

        async def _op(db: AsyncSession) -> ExamResult:
            exam = await self.exams.get_for_update(db, exam_id)
            if exam.status == ExamStatus.CANCELLED.value:
                raise InvalidOperationException("Cannot grade a cancelled exam")
            if data.marks_obtained > exam.total_marks:
                raise ValidationException(
                    [{"field": "marks_obtained", "message": f"must not exceed {exam.total_marks}"}]
                )

            member = await db.execute(
                select(GroupEnrollment.id).where(
                    GroupEnrollment.group_id == exam.group_id,
                    GroupEnrollment.student_id == data.student_id,
                    GroupEnrollment.state.in_([EnrollmentState.ENROLLED.value, EnrollmentState.COMPLETED.value]),
                    GroupEnrollment.deleted_at.is_(None),
                )
            )
            if member.first() is None:
                raise InvalidOperationException("Student is not enrolled in the exam's group")

            percentage = (data.marks_obtained / Decimal(exam.total_marks) * 100).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            existing = await db.execute(
                select(ExamResult).where(ExamResult.exam_id == exam.id, ExamResult.student_id == data.student_id)
            )
            result = existing.scalar_one_or_none()
            old = snapshot(result) if result else None
            if result is None:
                result = ExamResult(exam_id=exam.id, student_id=data.student_id)
                db.add(result)
            result.marks_obtained = data.marks_obtained
            result.percentage = percentage
            result.passed = data.marks_obtained >= exam.passing_marks
            result.remarks = data.remarks
            result.graded_by = grader.user_id
            result.graded_at = utcnow()
            await db.flush()

            self.audit.record(
                db, ctx,
                action="update" if old else "create",
                resource="exam_result",
                resource_id=result.id,
                old_value=old,
                new_value=snapshot(result),
            )
            return result

        return await self.database.run_in_transaction(ctx, _op)

    # === Calendar events ===

    async def create_event(self, ctx: RequestContext, data: EventCreate) -> CalendarEvent:
        """Scope is any of group, course or teacher that the event sets.

        An event with no scope key is never checked for conflicts.
        """
        start_at, end_at = as_utc(data.start_at), as_utc(data.end_at)
        validate_interval(start_at, end_at, field="end_at")

        async def _op(db: AsyncSession) -> CalendarEvent:
            if data.group_id:
                await self.groups.groups.get_for_update(db, data.group_id)

            scope = []
            if data.group_id:
                scope.append(CalendarEvent.group_id == data.group_id)
            if data.course_id:
                scope.append(CalendarEvent.course_id == data.course_id)
            if data.teacher_id:
                scope.append(CalendarEvent.teacher_id == data.teacher_id)

            if scope:
                result = await db.execute(
                    self.events.query().where(
                        or_(*scope),
                        CalendarEvent.start_at < end_at,
                        CalendarEvent.end_at > start_at,
                    )
                )
                clash = find_overlap(
                    start_at, end_at, ((e.id, e.start_at, e.end_at) for e in result.scalars().all())
                )
                if clash is not None:
                    raise ScheduleConflictException("Event", clash)

            event = CalendarEvent(
                title=data.title,
                description=data.description,
                location=data.location,
                start_at=start_at,
                end_at=end_at,
                group_id=data.group_id,
                course_id=data.course_id,
                teacher_id=data.teacher_id,
                created_by=ctx.user_id,
            )
            await self.events.add(db, event)
            self.audit.record(db, ctx, action="create", resource="calendar_event", resource_id=event.id, new_value=snapshot(event))
            return event

        return await self.database.run_in_transaction(ctx, _op)

    async def list_events(self, range_start: datetime | None = None, range_end: datetime | None = None) -> list[CalendarEvent]:
        criteria = []
        if range_start:
            criteria.append(CalendarEvent.end_at > as_utc(range_start))
        if range_end:
            criteria.append(CalendarEvent.start_at < as_utc(range_end))
        async with self.database.session() as db:
            return await self.events.find_all(db, *criteria, order_by=(CalendarEvent.start_at,))
