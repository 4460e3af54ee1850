"""Session core: login, token resolution, revocation and refresh."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NoReturn

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.config import Settings
from educrm.database import Database
from educrm.exceptions import (
    AuthenticationError,
    AuthFailure,
    DatabaseConnectionException,
    InvalidTokenException,
    NotFoundException,
    TokenExpiredException,
)
from educrm.models.base import utcnow
from educrm.models.session import UserSession
from educrm.models.user import User
from educrm.services.audit_service import AuditService
from educrm.utils.request_context import Principal, RequestContext
from educrm.utils.security import PasswordHasher, generate_session_token, hash_token

logger = logging.getLogger(__name__)

AUTH_RESOURCE = "auth"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class IssuedSession:
    """Result of a successful login. ``token`` is the only copy of the plaintext."""

    token: str
    session: UserSession
    user: User


class SessionService:
    """Issues, resolves and revokes bearer-token sessions."""

    def __init__(
        self,
        database: Database,
        audit: AuditService,
        hasher: PasswordHasher,
        settings: Settings,
    ):
        self.database = database
        self.audit = audit
        self.hasher = hasher
        self.settings = settings
        self._dummy_hash: str | None = None

    async def _equalize_timing(self, password: str) -> None:
        # Unknown and inactive accounts still pay for one hash verification.
        if self._dummy_hash is None:
            self._dummy_hash = await self.hasher.hash_async("educrm-timing-equalizer")
        await self.hasher.verify_async(password, self._dummy_hash)

    async def login(self, ctx: RequestContext, email: str, password: str) -> IssuedSession:
        """Verify credentials and open a session.

        Every failure is reported as invalid credentials and audited with the
        attempted email, never the password.
        """
        email = normalize_email(email)

        async with self.database.session() as db:
            result = await db.execute(
                select(User).where(User.email == email, User.deleted_at.is_(None))
            )
            user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            await self._equalize_timing(password)
            await self._reject_login(ctx, email, "unknown or inactive account")
        if not await self.hasher.verify_async(password, user.password_hash):
            await self._reject_login(ctx, email, "password mismatch")

        async def _issue(db: AsyncSession) -> IssuedSession:
            current = await db.get(User, user.id, with_for_update=True)
            if current is None or current.deleted_at is not None or not current.is_active:
                raise AuthenticationError(AuthFailure.INVALID_CREDENTIALS)

            token = generate_session_token()
            now = utcnow()
            session = UserSession(
                user_id=current.id,
                token_hash=hash_token(token),
                issued_at=now,
                expires_at=now + self.settings.session_ttl,
                last_seen_at=now,
                ip_address=ctx.ip,
                user_agent=ctx.user_agent[:500] if ctx.user_agent else None,
            )
            db.add(session)
            current.last_login_at = now
            await db.flush()

            self.audit.record(
                db,
                ctx,
                action="login",
                resource=AUTH_RESOURCE,
                resource_id=session.id,
                new_value={"email": email, "session_id": session.id, "expires_at": session.expires_at},
                user_id=current.id,
            )
            return IssuedSession(token=token, session=session, user=current)

        issued = await self.database.run_in_transaction(ctx, _issue)
        logger.info(f"User {issued.user.id} logged in, session {issued.session.id}")
        return issued

    async def _reject_login(self, ctx: RequestContext, email: str, reason: str) -> NoReturn:
        logger.info(f"Login failed for {email}: {reason}")
        await self.audit.record_standalone(
            ctx,
            action="login",
            resource=AUTH_RESOURCE,
            new_value={"email": email},
            success=False,
            error_msg=AuthFailure.INVALID_CREDENTIALS.value,
        )
        raise AuthenticationError(AuthFailure.INVALID_CREDENTIALS)

    async def resolve(self, token: str) -> Principal:
        """Map a bearer token to its principal.

        Resolution never extends ``expires_at``. ``last_seen_at`` is refreshed at
        most once per touch interval, best-effort.
        """
        now = utcnow()
        async with self.database.session() as db:
            result = await db.execute(
                select(UserSession, User)
                .join(User, User.id == UserSession.user_id)
                .where(UserSession.token_hash == hash_token(token))
            )
            row = result.one_or_none()

        if row is None:
            raise InvalidTokenException()
        session, user = row
        if session.revoked_at is not None:
            raise InvalidTokenException()
        if session.expires_at <= now:
            raise TokenExpiredException()
        if not user.is_active or user.deleted_at is not None:
            raise AuthenticationError(AuthFailure.USER_INACTIVE)

        if now - session.last_seen_at >= self.settings.session_touch_interval:
            await self._touch(session.id, now)

        return Principal(user_id=user.id, role=user.role, session_id=session.id)

    async def _touch(self, session_id: uuid.UUID, now: datetime) -> None:
        threshold = now - self.settings.session_touch_interval
        try:
            async with self.database.session() as db:
                await db.execute(
                    update(UserSession)
                    .where(UserSession.id == session_id, UserSession.last_seen_at < threshold)
                    .values(last_seen_at=now)
                    .execution_options(synchronize_session=False)
                )
        except (SQLAlchemyError, DatabaseConnectionException) as exc:
            logger.warning(f"Could not update last_seen_at for session {session_id}: {exc}")

    async def list_active(self, principal: Principal) -> list[UserSession]:
        """Active sessions of the principal's user, newest first."""
        now = utcnow()
        async with self.database.session() as db:
            result = await db.execute(
                select(UserSession)
                .where(
                    UserSession.user_id == principal.user_id,
                    UserSession.revoked_at.is_(None),
                    UserSession.expires_at > now,
                )
                .order_by(UserSession.created_at.desc(), UserSession.id.desc())
            )
            return list(result.scalars().all())

    async def _revoke_one(self, ctx: RequestContext, session_id: uuid.UUID, action: str) -> UserSession:
        principal = ctx.require_principal()

        async def _op(db: AsyncSession) -> UserSession:
            now = utcnow()
            result = await db.execute(
                select(UserSession)
                .where(
                    UserSession.id == session_id,
                    UserSession.user_id == principal.user_id,
                    UserSession.revoked_at.is_(None),
                    UserSession.expires_at > now,
                )
                .with_for_update()
            )
            session = result.scalar_one_or_none()
            if session is None:
                raise NotFoundException("Session")
            session.revoked_at = now
            await db.flush()
            self.audit.record(
                db,
                ctx,
                action=action,
                resource=AUTH_RESOURCE,
                resource_id=session.id,
                new_value={"session_id": session.id, "revoked_at": now},
            )
            return session

        return await self.database.run_in_transaction(ctx, _op)

    async def logout(self, ctx: RequestContext) -> UserSession:
        """Revoke the session the request was authenticated with."""
        principal = ctx.require_principal()
        return await self._revoke_one(ctx, principal.session_id, "logout")

    async def revoke(self, ctx: RequestContext, session_id: uuid.UUID) -> UserSession:
        """Revoke one of the principal's own sessions.

        Sessions of other users are reported as not found.
        """
        return await self._revoke_one(ctx, session_id, "revoke")

    async def revoke_all(self, ctx: RequestContext) -> int:
        """Revoke every active session of the principal's user, this one included."""
        principal = ctx.require_principal()

        async def _op(db: AsyncSession) -> int:
            count = await self.revoke_all_for_user(db, principal.user_id)
            self.audit.record(
                db,
                ctx,
                action="revoke_all",
                resource=AUTH_RESOURCE,
                resource_id=principal.user_id,
                new_value={"revoked": count},
            )
            return count

        return await self.database.run_in_transaction(ctx, _op)

    async def revoke_all_for_user(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        """Revoke a user's active sessions inside the caller's transaction."""
        now = utcnow()
        result = await db.execute(
            update(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.revoked_at.is_(None),
                UserSession.expires_at > now,
            )
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def refresh(self, ctx: RequestContext) -> UserSession:
        """Rolling refresh: push the current session's expiry to now + TTL."""
        principal = ctx.require_principal()

        async def _op(db: AsyncSession) -> UserSession:
            now = utcnow()
            session = await db.get(UserSession, principal.session_id, with_for_update=True)
            if session is None or session.revoked_at is not None:
                raise InvalidTokenException()
            if session.expires_at <= now:
                raise TokenExpiredException()
            old_expiry = session.expires_at
            session.expires_at = now + self.settings.session_ttl
            session.last_seen_at = now
            await db.flush()
            self.audit.record(
                db,
                ctx,
                action="refresh",
                resource=AUTH_RESOURCE,
                resource_id=session.id,
                old_value={"expires_at": old_expiry},
                new_value={"expires_at": session.expires_at},
            )
            return session

        return await self.database.run_in_transaction(ctx, _op)

    async def get_user(self, principal: Principal) -> User:
        async with self.database.session() as db:
            user = await db.get(User, principal.user_id)
        if user is None or user.deleted_at is not None:
            raise AuthenticationError(AuthFailure.USER_INACTIVE)
        return user

    async def cleanup(self, retention: timedelta = timedelta(days=7)) -> int:
        """Delete sessions that expired or were revoked more than ``retention`` ago."""
        cutoff = utcnow() - retention

        async def _op(db: AsyncSession) -> int:
            result = await db.execute(
                delete(UserSession)
                .where(or_(UserSession.expires_at < cutoff, UserSession.revoked_at < cutoff))
                .execution_options(synchronize_session=False)
            )
            count = result.rowcount or 0
            self.audit.record(
                db,
                None,
                action="cleanup",
                resource="session",
                new_value={"deleted": count, "cutoff": cutoff},
            )
            return count

        deleted = await self.database.run_in_transaction(None, _op, serializable=False)
        logger.info(f"Removed {deleted} stale sessions")
        return deleted
