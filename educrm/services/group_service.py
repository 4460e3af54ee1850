"""Groups, capacity and the enrollment edge."""

import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.invariants import capacity_ok
from educrm.exceptions import (
    CapacityExceededException,
    DuplicateEntryException,
    InvalidOperationException,
    NotFoundException,
)
from educrm.models import Course, EnrollmentState, Group, GroupEnrollment, GroupState, Student, Teacher
from educrm.models.base import utcnow
from educrm.repository import Repository
from educrm.schemas.group import GroupCreate, GroupUpdate
from educrm.services.audit_service import AuditService, snapshot
from educrm.utils.pagination import Page, PageParams
from educrm.utils.request_context import RequestContext

logger = logging.getLogger(__name__)


class GroupService:
    """Group lifecycle and the capacity-checked enrollment path.

    Every change to a group's enrollment count happens while holding the
    group row lock, which is what keeps ``count(enrolled) <= capacity``.
    """

    def __init__(self, database: Database, audit: AuditService):
        self.database = database
        self.audit = audit
        self.groups = Repository(Group, "Group")
        self.enrollments = Repository(GroupEnrollment, "Enrollment")

    async def count_enrolled(self, db: AsyncSession, group_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(GroupEnrollment.id)).where(
                GroupEnrollment.group_id == group_id,
                GroupEnrollment.state == EnrollmentState.ENROLLED.value,
                GroupEnrollment.deleted_at.is_(None),
            )
        )
        return result.scalar() or 0

    async def counts_for(self, db: AsyncSession, group_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        if not group_ids:
            return {}
        result = await db.execute(
            select(GroupEnrollment.group_id, func.count(GroupEnrollment.id))
            .where(
                GroupEnrollment.group_id.in_(group_ids),
                GroupEnrollment.state == EnrollmentState.ENROLLED.value,
                GroupEnrollment.deleted_at.is_(None),
            )
            .group_by(GroupEnrollment.group_id)
        )
        return {group_id: count for group_id, count in result.all()}

    async def find_or_create_student(
        self,
        db: AsyncSession,
        *,
        first_name: str,
        last_name: str,
        email: str | None,
        phone: str | None = None,
    ) -> Student:
        """Reuse the live student with this email, or create one.

        Used by every path that turns a prospect into an enrolled student.
        """
        students = Repository(Student, "Student")
        email = email.strip().lower() if email else None
        if email:
            result = await db.execute(students.query().where(Student.email == email))
            student = result.scalars().first()
            if student is not None:
                return student
        student = Student(first_name=first_name, last_name=last_name, email=email, phone=phone)
        return await students.add(db, student)

    async def enroll_locked(
        self,
        db: AsyncSession,
        group: Group,
        student_id: uuid.UUID,
    ) -> GroupEnrollment:
        """Attach a student to a group whose row the caller has locked.

        Raises:
            InvalidOperationException: group is not active
            DuplicateEntryException: student already enrolled
            CapacityExceededException: no free seat
        """
        if group.state != GroupState.ACTIVE.value:
            raise InvalidOperationException(
                f"Group is {group.state} and not accepting enrollments",
                details={"state": group.state},
            )

        result = await db.execute(
            select(GroupEnrollment).where(
                GroupEnrollment.group_id == group.id,
                GroupEnrollment.student_id == student_id,
            )
        )
        edge = result.scalar_one_or_none()
        if edge is not None and edge.state == EnrollmentState.ENROLLED.value and edge.deleted_at is None:
            raise DuplicateEntryException("Student is already enrolled in this group")

        current = await self.count_enrolled(db, group.id)
        if not capacity_ok(current, group.capacity):
            raise CapacityExceededException(group.capacity, current)

        now = utcnow()
        if edge is None:
            edge = GroupEnrollment(
                group_id=group.id,
                student_id=student_id,
                state=EnrollmentState.ENROLLED.value,
                enrolled_at=now,
            )
            db.add(edge)
        else:
            edge.state = EnrollmentState.ENROLLED.value
            edge.enrolled_at = now
            edge.withdrawn_at = None
            edge.deleted_at = None
        await db.flush()
        return edge

    async def create_group(self, ctx: RequestContext, data: GroupCreate) -> tuple[Group, int]:
        async def _op(db: AsyncSession) -> tuple[Group, int]:
            await Repository(Course, "Course").get_or_404(db, data.course_id)
            if data.teacher_id:
                await Repository(Teacher, "Teacher").get_or_404(db, data.teacher_id)

            group = Group(
                name=data.name,
                course_id=data.course_id,
                teacher_id=data.teacher_id,
                capacity=data.capacity,
                start_date=data.start_date,
                end_date=data.end_date,
                schedule=[slot.model_dump(mode="json") for slot in data.schedule],
                state=data.state.value,
            )
            await self.groups.add(db, group)
            self.audit.record(db, ctx, action="create", resource="group", resource_id=group.id, new_value=snapshot(group))
            return group, 0

        return await self.database.run_in_transaction(ctx, _op)

    async def get_group(self, group_id: uuid.UUID) -> tuple[Group, int]:
        """Get a group with its current enrollment count."""
        async with self.database.session() as db:
            group = await self.groups.get_or_404(db, group_id)
            return group, await self.count_enrolled(db, group.id)

    async def list_groups(
        self,
        params: PageParams,
        course_id: uuid.UUID | None = None,
        state: str | None = None,
    ) -> tuple[Page[Group], dict[uuid.UUID, int]]:
        criteria = []
        if course_id:
            criteria.append(Group.course_id == course_id)
        if state:
            criteria.append(Group.state == state)
        async with self.database.session() as db:
            page = await self.groups.page(
                db,
                params,
                *criteria,
                search_fields=(Group.name,),
                sort_fields={"created_at": Group.created_at, "name": Group.name, "start_date": Group.start_date},
            )
            counts = await self.counts_for(db, [g.id for g in page.items])
        return page, counts

    async def update_group(self, ctx: RequestContext, group_id: uuid.UUID, data: GroupUpdate) -> tuple[Group, int]:
        """Update a group. Capacity may not drop below the current enrollment."""
        changes = data.model_dump(exclude_unset=True, mode="json")

        async def _op(db: AsyncSession) -> tuple[Group, int]:
            group = await self.groups.get_for_update(db, group_id)
            old = snapshot(group)
            current = await self.count_enrolled(db, group.id)

            if "capacity" in changes and changes["capacity"] is not None and changes["capacity"] < current:
                raise InvalidOperationException(
                    f"Capacity cannot be reduced below current enrollment ({current})",
                    details={"current_enrollment": current},
                )
            if changes.get("teacher_id"):
                await Repository(Teacher, "Teacher").get_or_404(db, data.teacher_id)

            for field in ("name", "capacity", "start_date", "end_date"):
                if field in changes and getattr(data, field) is not None:
                    setattr(group, field, getattr(data, field))
            if data.state is not None:
                group.state = data.state.value
            if "teacher_id" in changes:
                group.teacher_id = data.teacher_id
            if "schedule" in changes and data.schedule is not None:
                group.schedule = changes["schedule"]
            if group.start_date and group.end_date and group.end_date < group.start_date:
                raise InvalidOperationException("end_date must not precede start_date")

            await db.flush()
            self.audit.record(
                db, ctx, action="update", resource="group", resource_id=group.id,
                old_value=old, new_value=snapshot(group),
            )
            return group, current

        return await self.database.run_in_transaction(ctx, _op)

    async def delete_group(self, ctx: RequestContext, group_id: uuid.UUID) -> None:
        """Soft-delete a group and detach its enrollment edges."""

        async def _op(db: AsyncSession) -> None:
            group = await self.groups.get_for_update(db, group_id)
            old = snapshot(group)
            now = utcnow()
            detached = await db.execute(
                update(GroupEnrollment)
                .where(GroupEnrollment.group_id == group.id, GroupEnrollment.deleted_at.is_(None))
                .values(deleted_at=now)
                .execution_options(synchronize_session=False)
            )
            group.deleted_at = now
            await db.flush()
            self.audit.record(
                db, ctx, action="delete", resource="group", resource_id=group.id,
                old_value=old, new_value={"detached_enrollments": detached.rowcount or 0},
            )

        await self.database.run_in_transaction(ctx, _op)

    async def enroll_student(self, ctx: RequestContext, group_id: uuid.UUID, student_id: uuid.UUID) -> GroupEnrollment:
        """Enroll an existing student directly into a group."""

        async def _op(db: AsyncSession) -> GroupEnrollment:
            group = await self.groups.get_for_update(db, group_id)
            await Repository(Student, "Student").get_or_404(db, student_id)
            edge = await self.enroll_locked(db, group, student_id)
            self.audit.record(db, ctx, action="enroll", resource="enrollment", resource_id=edge.id, new_value=snapshot(edge))
            return edge

        return await self.database.run_in_transaction(ctx, _op)

    async def withdraw_student(self, ctx: RequestContext, group_id: uuid.UUID, student_id: uuid.UUID) -> GroupEnrollment:
        async def _op(db: AsyncSession) -> GroupEnrollment:
            group = await self.groups.get_for_update(db, group_id)
            result = await db.execute(
                select(GroupEnrollment).where(
                    GroupEnrollment.group_id == group.id,
                    GroupEnrollment.student_id == student_id,
                    GroupEnrollment.state == EnrollmentState.ENROLLED.value,
                    GroupEnrollment.deleted_at.is_(None),
                )
            )
            edge = result.scalar_one_or_none()
            if edge is None:
                raise NotFoundException("Enrollment")
            old = snapshot(edge)
            edge.state = EnrollmentState.WITHDRAWN.value
            edge.withdrawn_at = utcnow()
            await db.flush()
            self.audit.record(
                db, ctx, action="withdraw", resource="enrollment", resource_id=edge.id,
                old_value=old, new_value=snapshot(edge),
            )
            return edge

        return await self.database.run_in_transaction(ctx, _op)

    async def list_enrollments(self, group_id: uuid.UUID) -> list[GroupEnrollment]:
        async with self.database.session() as db:
            await self.groups.get_or_404(db, group_id)
            return await self.enrollments.find_all(
                db,
                GroupEnrollment.group_id == group_id,
                order_by=(GroupEnrollment.enrolled_at.asc(),),
            )
