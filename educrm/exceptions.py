"""Typed error kinds, the code to status table, and global exception handlers."""

import logging
import traceback
from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Stable error identifiers returned in the error envelope."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    INVALID_OPERATION = "INVALID_OPERATION"
    RESOURCE_IN_USE = "RESOURCE_IN_USE"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    DATABASE_CONNECTION_ERROR = "DATABASE_CONNECTION_ERROR"
    DATABASE_QUERY_ERROR = "DATABASE_QUERY_ERROR"
    AUTH_SERVICE_UNAVAILABLE = "AUTH_SERVICE_UNAVAILABLE"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


# The single code -> HTTP status mapping. Routes never pick statuses themselves.
ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.TOO_MANY_REQUESTS: 429,
    ErrorCode.DUPLICATE_ENTRY: 409,
    ErrorCode.INVALID_OPERATION: 409,
    ErrorCode.RESOURCE_IN_USE: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
    ErrorCode.SCHEDULE_CONFLICT: 409,
    ErrorCode.DATABASE_CONNECTION_ERROR: 500,
    ErrorCode.DATABASE_QUERY_ERROR: 500,
    ErrorCode.AUTH_SERVICE_UNAVAILABLE: 500,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
}


class AuthFailure(str, Enum):
    """Reasons an authentication attempt or token resolution can fail."""

    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_MISSING = "token_missing"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    USER_INACTIVE = "user_inactive"


_AUTH_FAILURE_CODES: dict[AuthFailure, ErrorCode] = {
    AuthFailure.INVALID_CREDENTIALS: ErrorCode.UNAUTHORIZED,
    AuthFailure.TOKEN_MISSING: ErrorCode.UNAUTHORIZED,
    AuthFailure.TOKEN_INVALID: ErrorCode.INVALID_TOKEN,
    AuthFailure.TOKEN_EXPIRED: ErrorCode.TOKEN_EXPIRED,
    AuthFailure.USER_INACTIVE: ErrorCode.UNAUTHORIZED,
}

_AUTH_FAILURE_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.INVALID_CREDENTIALS: "Invalid email or password",
    AuthFailure.TOKEN_MISSING: "Authentication required",
    AuthFailure.TOKEN_INVALID: "Invalid or revoked token",
    AuthFailure.TOKEN_EXPIRED: "Token has expired",
    AuthFailure.USER_INACTIVE: "User account is inactive",
}


class EduCRMException(Exception):
    """Base exception for all EduCRM-specific errors."""

    code: ErrorCode = ErrorCode.BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.code]


class BadRequestException(EduCRMException):
    code = ErrorCode.BAD_REQUEST


class NotFoundException(EduCRMException):
    """Resource not found exception."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ForbiddenException(EduCRMException):
    """Access forbidden exception."""

    code = ErrorCode.FORBIDDEN

    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message)


class AuthenticationError(EduCRMException):
    """Authentication failure carrying a typed reason.

    The reason is reported in ``details.reason`` and selects the error code
    (``UNAUTHORIZED``, ``INVALID_TOKEN`` or ``TOKEN_EXPIRED``).
    """

    def __init__(self, reason: AuthFailure, message: str | None = None):
        self.reason = reason
        super().__init__(
            message or _AUTH_FAILURE_MESSAGES[reason],
            code=_AUTH_FAILURE_CODES[reason],
            details={"reason": reason.value},
        )


class InvalidTokenException(AuthenticationError):
    def __init__(self, message: str | None = None):
        super().__init__(AuthFailure.TOKEN_INVALID, message)


class TokenExpiredException(AuthenticationError):
    def __init__(self, message: str | None = None):
        super().__init__(AuthFailure.TOKEN_EXPIRED, message)


class ConflictException(EduCRMException):
    """Resource conflict exception."""

    code = ErrorCode.CONFLICT

    def __init__(self, message: str = "The resource was modified concurrently, retry the request"):
        super().__init__(message)


class DuplicateEntryException(EduCRMException):
    code = ErrorCode.DUPLICATE_ENTRY

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class ValidationException(EduCRMException):
    """Validation error exception with field-level errors."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, errors: list[dict] | str):
        if isinstance(errors, str):
            errors = [{"field": "general", "message": errors}]
        super().__init__("Validation failed", details={"errors": errors})
        self.errors = errors


class InvalidOperationException(EduCRMException):
    code = ErrorCode.INVALID_OPERATION


class ResourceInUseException(EduCRMException):
    code = ErrorCode.RESOURCE_IN_USE


class CapacityExceededException(EduCRMException):
    """Raised when a group has no free seat left."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, capacity: int, current: int, suggest_waitlist: bool = True):
        details: dict[str, Any] = {"capacity": capacity, "current_enrollment": current}
        if suggest_waitlist:
            details["suggested_action"] = "add_to_waitlist"
        super().__init__("Group is at full capacity", details=details)


class ScheduleConflictException(EduCRMException):
    """Raised when a slot overlaps an existing one in the same scope."""

    code = ErrorCode.SCHEDULE_CONFLICT

    def __init__(self, resource: str, conflicting_id: Any = None):
        details = {"conflicting_id": str(conflicting_id)} if conflicting_id else None
        super().__init__(f"{resource} overlaps an existing entry", details=details)


class DatabaseConnectionException(EduCRMException):
    """The database could not be reached or no pooled connection was free."""

    code = ErrorCode.DATABASE_CONNECTION_ERROR

    def __init__(self, message: str = "Database temporarily unavailable"):
        super().__init__(message, details={"retryable": True})


class DatabaseQueryException(EduCRMException):
    code = ErrorCode.DATABASE_QUERY_ERROR

    def __init__(self, message: str = "Database error"):
        super().__init__(message)


class RequestCancelledError(EduCRMException):
    """The client went away or the request deadline passed before commit."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "Request cancelled before completion"):
        super().__init__(message, details={"retryable": True})


_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.BAD_REQUEST,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.TOO_MANY_REQUESTS,
}


def error_response(
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the error envelope for a code."""
    content: dict[str, Any] = {"success": False, "code": code.value, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=ERROR_STATUS[code], content=content, headers=headers)


def create_exception_handlers():
    """Create the exception handlers registered on the application."""

    async def educrm_exception_handler(request: Request, exc: EduCRMException):
        """Handle EduCRM typed exceptions."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(
                f"{type(exc).__name__} on {request.method} {request.url.path}: "
                f"{exc.message} (code={exc.code.value})"
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(exc.code, exc.message, exc.details, headers=headers)

    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Handle request body/query validation failures."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning(f"Validation failed on {request.method} {request.url.path}: {errors}")
        return error_response(ErrorCode.VALIDATION_ERROR, "Validation failed", {"errors": errors})

    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Map framework HTTP errors (404 route, 405 method) onto error codes."""
        code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = exc.detail if isinstance(exc.detail, str) else code.value
        return error_response(code, message)

    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}")
        tb_lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        logger.error("".join(tb_lines))
        return error_response(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")

    return {
        EduCRMException: educrm_exception_handler,
        RequestValidationError: request_validation_handler,
        StarletteHTTPException: http_exception_handler,
        Exception: generic_exception_handler,
    }
