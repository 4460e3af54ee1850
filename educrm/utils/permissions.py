"""Role-based permission decorators and utilities."""

from functools import wraps
from typing import Callable

from educrm.exceptions import AuthenticationError, AuthFailure, ForbiddenException
from educrm.models.user import Role
from educrm.utils.request_context import get_current_principal

STAFF_ROLES = frozenset({Role.ADMIN.value, Role.STAFF.value})


def require_role(*allowed_roles: Role | str) -> Callable:
    """Decorator that enforces role-based access control.

    Usage:
        @router.post("/groups")
        @require_role(Role.ADMIN, Role.STAFF)
        async def create_group(...):
            ...

    Admins pass every role check.
    """
    role_values = {role.value if isinstance(role, Role) else role for role in allowed_roles}

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            principal = get_current_principal()
            if principal is None:
                raise AuthenticationError(AuthFailure.TOKEN_MISSING)

            if principal.role != Role.ADMIN.value and principal.role not in role_values:
                raise ForbiddenException()

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def is_staff_role(role: str | None) -> bool:
    return role in STAFF_ROLES
