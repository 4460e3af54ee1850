"""Service layer for business logic."""

from educrm.services.application_service import ApplicationService
from educrm.services.attendance_service import AttendanceService
from educrm.services.audit_service import AuditService
from educrm.services.catalog_service import CatalogService
from educrm.services.group_service import GroupService
from educrm.services.invoice_service import InvoiceService
from educrm.services.schedule_service import ScheduleService
from educrm.services.session_service import SessionService
from educrm.services.user_service import UserService
from educrm.services.waitlist_service import WaitlistService

__all__ = [
    "ApplicationService",
    "AttendanceService",
    "AuditService",
    "CatalogService",
    "GroupService",
    "InvoiceService",
    "ScheduleService",
    "SessionService",
    "UserService",
    "WaitlistService",
]
