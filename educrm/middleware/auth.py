"""Authentication middleware for bearer session tokens."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from educrm.exceptions import AuthenticationError, AuthFailure, EduCRMException, error_response
from educrm.utils.request_context import set_current_principal


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolves the ``Authorization: Bearer`` token into a principal.

    API paths require a valid token unless exempt. Public application
    submission accepts a token but does not require one.
    """

    def __init__(self, app, api_prefix: str = "/api/v1"):
        super().__init__(app)
        self.api_prefix = api_prefix
        # Paths that don't require authentication
        self.exempt_paths = {
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
            f"{api_prefix}/auth/login",
        }
        # Method + path pairs where a token is optional
        self.optional_auth = {
            ("POST", f"{api_prefix}/applications"),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and set the principal context."""
        request.state.principal = None
        path = request.url.path.rstrip("/") or "/"

        if path in self.exempt_paths or not path.startswith(self.api_prefix):
            return await call_next(request)

        optional = (request.method, path) in self.optional_auth
        token = self._extract_token(request)
        if token is None:
            if optional:
                return await call_next(request)
            return self._reject(AuthenticationError(AuthFailure.TOKEN_MISSING))

        container = request.app.state.container
        try:
            principal = await container.sessions.resolve(token)
        except EduCRMException as exc:
            return self._reject(exc)

        set_current_principal(principal)
        request.state.principal = principal
        try:
            return await call_next(request)
        finally:
            set_current_principal(None)

    def _extract_token(self, request: Request) -> str | None:
        auth_header = request.headers.get("Authorization", "")
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            return None
        return credentials.strip()

    def _reject(self, exc: EduCRMException) -> Response:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(exc.code, exc.message, exc.details, headers=headers)
