"""Audit trail writes and reads."""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.database import Database
from educrm.models.audit_log import AuditLog
from educrm.utils.pagination import Page, PageParams, paginate
from educrm.utils.request_context import RequestContext

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = frozenset({"password", "password_hash", "token", "token_hash", "secret"})


def to_json_safe(value: Any) -> Any:
    """Convert a value into something the JSON column accepts."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(v) for v in value]
    return str(value)


def redact(data: Any) -> Any:
    """Replace values under sensitive keys with a placeholder, recursively."""
    if isinstance(data, dict):
        return {
            key: REDACTED if key.lower() in SENSITIVE_KEYS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


def snapshot(entity: Any) -> dict[str, Any]:
    """Column values of an ORM instance as a redacted, JSON-safe dict."""
    mapper = inspect(entity).mapper
    values = {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}
    return redact(to_json_safe(values))


@dataclass(frozen=True)
class AuditFilter:
    user_id: uuid.UUID | None = None
    resource: str | None = None
    resource_id: str | None = None
    action: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class AuditService:
    """Writes audit rows inside the caller's transaction and serves filtered reads.

    Because the row is added to the same session as the mutation, it commits
    or rolls back together with it.
    """

    def __init__(self, database: Database):
        self.database = database

    def record(
        self,
        db: AsyncSession,
        ctx: RequestContext | None,
        *,
        action: str,
        resource: str,
        resource_id: Any = "",
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        success: bool = True,
        error_msg: str | None = None,
        user_id: uuid.UUID | None = None,
    ) -> AuditLog:
        """Stage an audit row in ``db``. It is persisted when the caller commits."""
        entry = AuditLog(
            user_id=user_id or (ctx.user_id if ctx else None),
            request_id=ctx.request_id if ctx else None,
            action=action,
            resource=resource,
            resource_id=str(resource_id) if resource_id else "",
            old_value=redact(to_json_safe(old_value)) if old_value is not None else None,
            new_value=redact(to_json_safe(new_value)) if new_value is not None else None,
            ip_address=ctx.ip if ctx else None,
            user_agent=ctx.user_agent[:500] if ctx and ctx.user_agent else None,
            success=success,
            error_msg=error_msg,
        )
        db.add(entry)
        return entry

    async def record_standalone(self, ctx: RequestContext | None, **fields: Any) -> None:
        """Persist an audit row in its own transaction.

        Used for events with no accompanying mutation, such as failed logins.
        """

        async def _write(db: AsyncSession) -> None:
            self.record(db, ctx, **fields)

        await self.database.run_in_transaction(None, _write, serializable=False)

    async def list_logs(self, filters: AuditFilter, params: PageParams) -> Page[AuditLog]:
        """Filtered, paginated audit rows ordered by time with ``seq`` as tie-break."""
        criteria = []
        if filters.user_id:
            criteria.append(AuditLog.user_id == filters.user_id)
        if filters.resource:
            criteria.append(AuditLog.resource == filters.resource)
        if filters.resource_id:
            criteria.append(AuditLog.resource_id == filters.resource_id)
        if filters.action:
            criteria.append(AuditLog.action == filters.action)
        if filters.created_from:
            criteria.append(AuditLog.created_at >= filters.created_from)
        if filters.created_to:
            criteria.append(AuditLog.created_at <= filters.created_to)

        async with self.database.session() as db:
            return await paginate(
                db,
                select(AuditLog).where(*criteria),
                params,
                search_fields=(AuditLog.action, AuditLog.resource),
                sort_fields={"created_at": AuditLog.created_at},
                tie_breaker=AuditLog.seq,
            )
