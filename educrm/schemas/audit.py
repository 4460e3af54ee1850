"""Audit log schemas."""

import uuid
from datetime import datetime
from typing import Any

from educrm.schemas.common import BaseSchema


class AuditLogResponse(BaseSchema):
    id: uuid.UUID
    seq: int
    user_id: uuid.UUID | None
    request_id: str | None
    action: str
    resource: str
    resource_id: str
    old_value: dict[str, Any] | None
    new_value: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    success: bool
    error_msg: str | None
    created_at: datetime
