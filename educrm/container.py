"""Service wiring for one application instance."""

from sqlalchemy.ext.asyncio import AsyncEngine

from educrm.config import Settings
from educrm.database import Database
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
from educrm.utils.security import PasswordHasher


class Container:
    """Builds every service once, sharing a single database and audit writer."""

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self.settings = settings
        self.database = Database(settings, engine)
        self.hasher = PasswordHasher(settings.password_hash_cost)

        self.audit = AuditService(self.database)
        self.sessions = SessionService(self.database, self.audit, self.hasher, settings)
        self.users = UserService(self.database, self.audit, self.sessions, self.hasher)
        self.catalog = CatalogService(self.database, self.audit)
        self.groups = GroupService(self.database, self.audit)
        self.attendance = AttendanceService(self.database, self.audit, self.groups)
        self.schedule = ScheduleService(self.database, self.audit, self.groups)
        self.invoices = InvoiceService(self.database, self.audit)
        self.waitlist = WaitlistService(self.database, self.audit, self.groups)
        self.applications = ApplicationService(self.database, self.audit, self.groups)

    async def close(self) -> None:
        await self.database.close()
