"""User account management."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.exceptions import DuplicateEntryException, InvalidOperationException
from educrm.models import Student, Teacher, User
from educrm.repository import Repository
from educrm.schemas.user import UserCreate
from educrm.services.audit_service import AuditService, snapshot
from educrm.services.session_service import SessionService, normalize_email
from educrm.utils.pagination import Page, PageParams
from educrm.utils.request_context import RequestContext
from educrm.utils.security import PasswordHasher

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management operations."""

    def __init__(
        self,
        database: Database,
        audit: AuditService,
        sessions: SessionService,
        hasher: PasswordHasher,
    ):
        self.database = database
        self.audit = audit
        self.sessions = sessions
        self.hasher = hasher
        self.users = Repository(User, "User")

    async def create_user(self, ctx: RequestContext, data: UserCreate) -> User:
        """Create a user account with a hashed password."""
        email = normalize_email(data.email)
        password_hash = await self.hasher.hash_async(data.password)

        async def _op(db: AsyncSession) -> User:
            existing = await db.execute(self.users.query().where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateEntryException("A user with this email already exists")
            if data.teacher_id:
                await Repository(Teacher, "Teacher").get_or_404(db, data.teacher_id)
            if data.student_id:
                await Repository(Student, "Student").get_or_404(db, data.student_id)

            user = User(
                email=email,
                password_hash=password_hash,
                role=data.role.value,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
                teacher_id=data.teacher_id,
                student_id=data.student_id,
                is_active=True,
            )
            await self.users.add(db, user)
            self.audit.record(db, ctx, action="create", resource="user", resource_id=user.id, new_value=snapshot(user))
            return user

        return await self.database.run_in_transaction(ctx, _op)

    async def get_user(self, user_id: uuid.UUID) -> User:
        async with self.database.session() as db:
            return await self.users.get_or_404(db, user_id)

    async def list_users(self, params: PageParams, role: str | None = None) -> Page[User]:
        criteria = [User.role == role] if role else []
        async with self.database.session() as db:
            return await self.users.page(
                db,
                params,
                *criteria,
                search_fields=(User.email, User.first_name, User.last_name),
                sort_fields={"created_at": User.created_at, "email": User.email, "last_name": User.last_name},
            )

    async def delete_user(self, ctx: RequestContext, user_id: uuid.UUID) -> None:
        """Soft-delete a user: unlink profiles and revoke all sessions."""
        principal = ctx.require_principal()
        if principal.user_id == user_id:
            raise InvalidOperationException("You cannot delete your own account")

        async def _op(db: AsyncSession) -> None:
            user = await self.users.get_for_update(db, user_id)
            old = snapshot(user)
            user.teacher_id = None
            user.student_id = None
            user.is_active = False
            await self.users.soft_delete(db, user)
            revoked = await self.sessions.revoke_all_for_user(db, user.id)
            self.audit.record(
                db, ctx, action="delete", resource="user", resource_id=user.id,
                old_value=old, new_value={"revoked_sessions": revoked},
            )

        await self.database.run_in_transaction(ctx, _op)
        logger.info(f"User {user_id} deleted by {principal.user_id}")
