"""Request-scoped context: request id, principal and cancellation.

Context variables carry the request id and principal for logging and role
checks. Mutating service calls receive an explicit ``RequestContext``.
"""

import contextvars
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from educrm.exceptions import AuthenticationError, AuthFailure, RequestCancelledError

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
_principal: contextvars.ContextVar["Principal | None"] = contextvars.ContextVar("principal", default=None)


@dataclass(frozen=True)
class Principal:
    """The authenticated actor for a request."""

    user_id: uuid.UUID
    role: str
    session_id: uuid.UUID


@dataclass
class RequestContext:
    """Everything a mutation needs to know about the request that triggered it."""

    request_id: str = field(default_factory=lambda: new_request_id())
    principal: Principal | None = None
    ip: str | None = None
    user_agent: str | None = None
    deadline: float | None = None
    is_disconnected: Callable[[], Awaitable[bool]] | None = None

    @property
    def user_id(self) -> uuid.UUID | None:
        return self.principal.user_id if self.principal else None

    def require_principal(self) -> Principal:
        """Return the principal or fail with token_missing."""
        if self.principal is None:
            raise AuthenticationError(AuthFailure.TOKEN_MISSING)
        return self.principal

    async def raise_if_cancelled(self) -> None:
        """Raise if the request deadline passed or the client disconnected."""
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise RequestCancelledError("Request deadline exceeded")
        if self.is_disconnected is not None and await self.is_disconnected():
            raise RequestCancelledError("Client disconnected")


def new_request_id() -> str:
    return uuid.uuid4().hex


# === Request ID ===

def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


# === Principal ===

def get_current_principal() -> Principal | None:
    """Get the authenticated principal or None for anonymous requests."""
    return _principal.get()


def set_current_principal(principal: Principal | None) -> None:
    _principal.set(principal)


def clear_all_context() -> None:
    """Clear all request context variables."""
    _request_id.set(None)
    _principal.set(None)


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        return True
