"""SQLAlchemy models for EduCRM."""

from educrm.models.base import Base, BaseModel, GUID, JSONB, SoftDeleteMixin, TimestampMixin, UTCDateTime, as_utc, utcnow
from educrm.models.user import Role, User
from educrm.models.session import UserSession
from educrm.models.audit_log import AuditLog
from educrm.models.course import Course
from educrm.models.teacher import Teacher
from educrm.models.student import Student
from educrm.models.group import EnrollmentState, Group, GroupEnrollment, GroupState
from educrm.models.attendance import Attendance, AttendanceStatus
from educrm.models.timetable import TimetableEntry
from educrm.models.exam import Exam, ExamResult, ExamStatus
from educrm.models.event import CalendarEvent
from educrm.models.application import Application, ApplicationStatus
from educrm.models.invoice import Invoice, InvoiceStatus, RecurringInvoiceSchedule
from educrm.models.waitlist import WaitlistEntry, WaitlistStatus

__all__ = [
    "Base",
    "BaseModel",
    "GUID",
    "JSONB",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UTCDateTime",
    "as_utc",
    "utcnow",
    "Role",
    "User",
    "UserSession",
    "AuditLog",
    "Course",
    "Teacher",
    "Student",
    "Group",
    "GroupEnrollment",
    "GroupState",
    "EnrollmentState",
    "Attendance",
    "AttendanceStatus",
    "TimetableEntry",
    "Exam",
    "ExamResult",
    "ExamStatus",
    "CalendarEvent",
    "Application",
    "ApplicationStatus",
    "Invoice",
    "InvoiceStatus",
    "RecurringInvoiceSchedule",
    "WaitlistEntry",
    "WaitlistStatus",
]
