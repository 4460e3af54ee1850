"""Middleware exports."""

from educrm.middleware.auth import AuthMiddleware
from educrm.middleware.request import RequestContextMiddleware

__all__ = ["AuthMiddleware", "RequestContextMiddleware"]
