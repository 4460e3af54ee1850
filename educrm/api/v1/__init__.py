"""API v1 router aggregator."""

from fastapi import APIRouter

from educrm.api.v1 import (
    applications,
    audit,
    auth,
    courses,
    events,
    exams,
    groups,
    invoices,
    students,
    teachers,
    timetables,
    users,
    waitlist,
)

api_router = APIRouter()

# Include all API routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(courses.router, prefix="/courses", tags=["Courses"])
api_router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(groups.router, prefix="/groups", tags=["Groups"])
api_router.include_router(timetables.router, prefix="/timetables", tags=["Timetables"])
api_router.include_router(exams.router, prefix="/exams", tags=["Exams"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(waitlist.router, prefix="/waitlist", tags=["Waitlist"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["Audit"])
