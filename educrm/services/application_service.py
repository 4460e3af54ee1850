"""Course applications: submission, review and enrollment."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.domain.transitions import ApplicationAction, next_application_status
from educrm.exceptions import (
    ForbiddenException,
    InvalidOperationException,
    ValidationException,
)
from educrm.models import Application, ApplicationStatus, Course, Group
from educrm.models.base import utcnow
from educrm.repository import Repository
from educrm.schemas.application import ApplicationCreate
from educrm.services.audit_service import AuditService, snapshot
from educrm.services.group_service import GroupService
from educrm.services.session_service import normalize_email
from educrm.utils.pagination import Page, PageParams
from educrm.utils.permissions import is_staff_role
from educrm.utils.request_context import RequestContext

logger = logging.getLogger(__name__)


class ApplicationService:
    """Application state machine.

    submitted -> under_review -> approved/rejected, approved -> enrolled, and
    withdrawal from any open state. Every other move is INVALID_OPERATION.
    """

    def __init__(self, database: Database, audit: AuditService, groups: GroupService):
        self.database = database
        self.audit = audit
        self.groups = groups
        self.applications = Repository(Application, "Application")

    async def submit(self, ctx: RequestContext, data: ApplicationCreate) -> Application:
        """Public submission; no principal is required."""

        async def _op(db: AsyncSession) -> Application:
            course = await Repository(Course, "Course").get_or_404(db, data.course_id)
            if not course.is_active:
                raise InvalidOperationException("Course is not accepting applications")
            if data.preferred_group_id:
                group = await Repository(Group, "Group").get_or_404(db, data.preferred_group_id)
                if group.course_id != course.id:
                    raise ValidationException(
                        [{"field": "preferred_group_id", "message": "group belongs to a different course"}]
                    )

            application = Application(
                first_name=data.first_name,
                last_name=data.last_name,
                email=normalize_email(data.email),
                phone=data.phone,
                notes=data.notes,
                course_id=course.id,
                preferred_group_id=data.preferred_group_id,
                status=ApplicationStatus.SUBMITTED.value,
            )
            await self.applications.add(db, application)
            self.audit.record(
                db, ctx, action="create", resource="application",
                resource_id=application.id, new_value=snapshot(application),
            )
            return application

        return await self.database.run_in_transaction(ctx, _op)

    async def get(self, application_id: uuid.UUID) -> Application:
        async with self.database.session() as db:
            return await self.applications.get_or_404(db, application_id)

    async def list(self, params: PageParams, status: str | None = None) -> Page[Application]:
        criteria = [Application.status == status] if status else []
        async with self.database.session() as db:
            return await self.applications.page(
                db,
                params,
                *criteria,
                search_fields=(Application.first_name, Application.last_name, Application.email),
                sort_fields={"created_at": Application.created_at, "last_name": Application.last_name},
            )

    async def _transition(
        self,
        ctx: RequestContext,
        application_id: uuid.UUID,
        action: ApplicationAction,
        audit_action: str,
        notes: str | None = None,
    ) -> Application:
        async def _op(db: AsyncSession) -> Application:
            application = await self.applications.get_for_update(db, application_id)
            target = next_application_status(application.status, action)
            old = snapshot(application)

            application.status = target.value
            if action in (ApplicationAction.APPROVE, ApplicationAction.REJECT):
                application.reviewer_id = ctx.user_id
                application.reviewed_at = utcnow()
                application.review_notes = notes
            await db.flush()

            self.audit.record(
                db, ctx, action=audit_action, resource="application", resource_id=application.id,
                old_value=old, new_value=snapshot(application),
            )
            return application

        return await self.database.run_in_transaction(ctx, _op)

    def _require_reviewer(self, ctx: RequestContext) -> None:
        principal = ctx.require_principal()
        if not is_staff_role(principal.role):
            raise ForbiddenException("Only admin or staff can review applications")

    async def start_review(self, ctx: RequestContext, application_id: uuid.UUID) -> Application:
        self._require_reviewer(ctx)
        return await self._transition(ctx, application_id, ApplicationAction.START_REVIEW, "start_review")

    async def review(
        self,
        ctx: RequestContext,
        application_id: uuid.UUID,
        approve: bool,
        notes: str | None = None,
    ) -> Application:
        """Approve or reject. Requires an admin or staff reviewer."""
        self._require_reviewer(ctx)
        action = ApplicationAction.APPROVE if approve else ApplicationAction.REJECT
        return await self._transition(ctx, application_id, action, "review", notes)

    async def withdraw(self, ctx: RequestContext, application_id: uuid.UUID) -> Application:
        return await self._transition(ctx, application_id, ApplicationAction.WITHDRAW, "withdraw")

    async def enroll(
        self,
        ctx: RequestContext,
        application_id: uuid.UUID,
        group_id: uuid.UUID | None = None,
    ) -> Application:
        """Turn an approved application into an enrolled student.

        Locks the application, then the group; the capacity check runs under
        the group lock. A full group fails with CAPACITY_EXCEEDED and a hint
        to use the waitlist.
        """

        async def _op(db: AsyncSession) -> Application:
            application = await self.applications.get_for_update(db, application_id)
            target = next_application_status(application.status, ApplicationAction.ENROLL)

            target_group_id = group_id or application.preferred_group_id
            if target_group_id is None:
                raise ValidationException([{"field": "group_id", "message": "a target group is required"}])
            group = await self.groups.groups.get_for_update(db, target_group_id)
            if group.course_id != application.course_id:
                raise InvalidOperationException("Group belongs to a different course than the application")

            student = await self.groups.find_or_create_student(
                db,
                first_name=application.first_name,
                last_name=application.last_name,
                email=application.email,
                phone=application.phone,
            )

            await self.groups.enroll_locked(db, group, student.id)

            old = snapshot(application)
            now = utcnow()
            application.status = target.value
            application.enrolled_student_id = student.id
            application.enrolled_group_id = group.id
            application.enrolled_at = now
            await db.flush()

            self.audit.record(
                db, ctx, action="enroll", resource="application", resource_id=application.id,
                old_value=old, new_value=snapshot(application),
            )
            return application

        application = await self.database.run_in_transaction(ctx, _op)
        logger.info(f"Application {application.id} enrolled into group {application.enrolled_group_id}")
        return application
