"""Courses, teachers and students."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.exceptions import DuplicateEntryException, ResourceInUseException
from educrm.models import Course, Group, Student, Teacher
from educrm.repository import Repository
from educrm.schemas.catalog import CourseCreate, StudentCreate, TeacherCreate
from educrm.services.audit_service import AuditService, snapshot
from educrm.utils.pagination import Page, PageParams
from educrm.utils.request_context import RequestContext


class CatalogService:
    """Plain entity management for the records the coordinated operations use."""

    def __init__(self, database: Database, audit: AuditService):
        self.database = database
        self.audit = audit
        self.courses = Repository(Course, "Course")
        self.teachers = Repository(Teacher, "Teacher")
        self.students = Repository(Student, "Student")

    # === Courses ===

    async def create_course(self, ctx: RequestContext, data: CourseCreate) -> Course:
        code = data.code.strip().upper()

        async def _op(db: AsyncSession) -> Course:
            existing = await db.execute(
                self.courses.query().where(func.upper(Course.code) == code)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateEntryException(f"Course code {code} already exists")
            course = Course(name=data.name, code=code, description=data.description)
            await self.courses.add(db, course)
            self.audit.record(db, ctx, action="create", resource="course", resource_id=course.id, new_value=snapshot(course))
            return course

        return await self.database.run_in_transaction(ctx, _op)

    async def get_course(self, course_id: uuid.UUID) -> Course:
        async with self.database.session() as db:
            return await self.courses.get_or_404(db, course_id)

    async def list_courses(self, params: PageParams) -> Page[Course]:
        async with self.database.session() as db:
            return await self.courses.page(
                db,
                params,
                search_fields=(Course.name, Course.code),
                sort_fields={"created_at": Course.created_at, "name": Course.name, "code": Course.code},
            )

    async def delete_course(self, ctx: RequestContext, course_id: uuid.UUID) -> None:
        """Soft-delete a course that has no live groups."""

        async def _op(db: AsyncSession) -> None:
            course = await self.courses.get_for_update(db, course_id)
            groups = await db.execute(
                select(func.count(Group.id)).where(Group.course_id == course.id, Group.deleted_at.is_(None))
            )
            in_use = groups.scalar() or 0
            if in_use:
                raise ResourceInUseException(
                    "Course still has groups", details={"groups": in_use}
                )
            old = snapshot(course)
            await self.courses.soft_delete(db, course)
            self.audit.record(db, ctx, action="delete", resource="course", resource_id=course.id, old_value=old)

        await self.database.run_in_transaction(ctx, _op)

    # === Teachers ===

    async def create_teacher(self, ctx: RequestContext, data: TeacherCreate) -> Teacher:
        async def _op(db: AsyncSession) -> Teacher:
            teacher = Teacher(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email.lower() if data.email else None,
                phone=data.phone,
                specialization=data.specialization,
            )
            await self.teachers.add(db, teacher)
            self.audit.record(db, ctx, action="create", resource="teacher", resource_id=teacher.id, new_value=snapshot(teacher))
            return teacher

        return await self.database.run_in_transaction(ctx, _op)

    async def get_teacher(self, teacher_id: uuid.UUID) -> Teacher:
        async with self.database.session() as db:
            return await self.teachers.get_or_404(db, teacher_id)

    async def list_teachers(self, params: PageParams) -> Page[Teacher]:
        async with self.database.session() as db:
            return await self.teachers.page(
                db,
                params,
                search_fields=(Teacher.first_name, Teacher.last_name, Teacher.email),
                sort_fields={"created_at": Teacher.created_at, "last_name": Teacher.last_name},
            )

    # === Students ===

    async def create_student(self, ctx: RequestContext, data: StudentCreate) -> Student:
        async def _op(db: AsyncSession) -> Student:
            student = Student(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email.lower() if data.email else None,
                phone=data.phone,
                date_of_birth=data.date_of_birth,
                notes=data.notes,
            )
            await self.students.add(db, student)
            self.audit.record(db, ctx, action="create", resource="student", resource_id=student.id, new_value=snapshot(student))
            return student

        return await self.database.run_in_transaction(ctx, _op)

    async def get_student(self, student_id: uuid.UUID) -> Student:
        async with self.database.session() as db:
            return await self.students.get_or_404(db, student_id)

    async def list_students(self, params: PageParams) -> Page[Student]:
        async with self.database.session() as db:
            return await self.students.page(
                db,
                params,
                search_fields=(Student.first_name, Student.last_name, Student.email),
                sort_fields={"created_at": Student.created_at, "last_name": Student.last_name},
            )
