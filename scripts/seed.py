#!/usr/bin/env python3
"""
Development seed data script.

Creates test data for development:
- 1 admin and 1 staff user
- 1 teacher with a linked teacher account
- 1 course (PY101) with one group of 12 seats
- 5 students enrolled in the group
- a monthly invoice schedule for the first student

Usage:
    python scripts/seed.py

All test users have password: "password123"
"""

import asyncio
import sys
from datetime import date
from decimal import Decimal

from sqlalchemy import select

from educrm.config import get_settings
from educrm.container import Container
from educrm.domain.cadence import Cadence
from educrm.models import Course
from educrm.models.user import Role
from educrm.schemas.catalog import CourseCreate, StudentCreate, TeacherCreate
from educrm.schemas.group import GroupCreate, ScheduleSlot
from educrm.schemas.invoice import RecurringScheduleCreate
from educrm.schemas.user import UserCreate
from educrm.utils.request_context import RequestContext

TEST_PASSWORD = "password123"

STUDENTS = [
    ("Grace", "Hopper"),
    ("Alan", "Turing"),
    ("Edsger", "Dijkstra"),
    ("Barbara", "Liskov"),
    ("Donald", "Knuth"),
]


async def seed_database(container: Container) -> bool:
    """Seed the database with test data."""
    print("\n" + "=" * 50)
    print("EduCRM - Seeding Development Data")
    print("=" * 50 + "\n")

    async with container.database.session() as session:
        result = await session.execute(select(Course).where(Course.code == "PY101"))
        if result.scalar_one_or_none():
            print("Seed data already exists (course 'PY101' found). Aborting.")
            return False

    ctx = RequestContext()

    print("Creating users: admin@example.com, staff@example.com...")
    await container.users.create_user(ctx, UserCreate(
        email="admin@example.com", password=TEST_PASSWORD, role=Role.ADMIN,
        first_name="Ada", last_name="Lovelace",
    ))
    await container.users.create_user(ctx, UserCreate(
        email="staff@example.com", password=TEST_PASSWORD, role=Role.STAFF,
        first_name="Charles", last_name="Babbage",
    ))

    print("Creating teacher: Margaret Hamilton...")
    teacher = await container.catalog.create_teacher(ctx, TeacherCreate(
        first_name="Margaret", last_name="Hamilton", email="margaret@example.com",
        specialization="Software engineering",
    ))
    await container.users.create_user(ctx, UserCreate(
        email="margaret@example.com", password=TEST_PASSWORD, role=Role.TEACHER,
        first_name="Margaret", last_name="Hamilton", teacher_id=teacher.id,
    ))

    print("Creating course PY101 and its morning group...")
    course = await container.catalog.create_course(ctx, CourseCreate(
        name="Python Foundations", code="PY101", description="Twelve-week introduction to Python",
    ))
    group, _ = await container.groups.create_group(ctx, GroupCreate(
        name="PY101 Morning",
        course_id=course.id,
        teacher_id=teacher.id,
        capacity=12,
        start_date=date.today(),
        schedule=[
            ScheduleSlot(weekday=0, start_time="09:00", end_time="10:30"),
            ScheduleSlot(weekday=2, start_time="09:00", end_time="10:30"),
        ],
    ))

    print(f"Creating and enrolling {len(STUDENTS)} students...")
    created_students = []
    for first_name, last_name in STUDENTS:
        student = await container.catalog.create_student(ctx, StudentCreate(
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}.{last_name.lower()}@example.com",
        ))
        await container.groups.enroll_student(ctx, group.id, student.id)
        created_students.append(student)

    print("Creating a monthly invoice schedule...")
    await container.invoices.create_schedule(ctx, RecurringScheduleCreate(
        student_id=created_students[0].id,
        group_id=group.id,
        amount=Decimal("150.00"),
        description="PY101 monthly tuition",
        cadence=Cadence.MONTHLY,
        anchor_date=date.today().replace(day=1),
    ))

    print("\n" + "=" * 50)
    print("Seed Data Created Successfully!")
    print("=" * 50)
    print(f"\nLogin with any user, password: {TEST_PASSWORD}")
    print(f"\nGroup: {group.name} ({len(created_students)}/{group.capacity} seats)")
    print("=" * 50 + "\n")
    return True


async def main():
    """Main entry point."""
    settings = get_settings()
    container = Container(settings)
    try:
        success = await seed_database(container)
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    finally:
        await container.close()


if __name__ == "__main__":
    asyncio.run(main())
