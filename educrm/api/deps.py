"""Route dependencies: the service container and the request context."""

from fastapi import Request

from educrm.container import Container
from educrm.utils.request_context import RequestContext, get_request_id, new_request_id


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_request_context(request: Request) -> RequestContext:
    """Build the context a mutating service call receives.

    The principal comes from the auth middleware; the deadline from the
    request middleware.
    """
    client = request.client
    return RequestContext(
        request_id=getattr(request.state, "request_id", None) or get_request_id() or new_request_id(),
        principal=getattr(request.state, "principal", None),
        ip=client.host if client else None,
        user_agent=request.headers.get("User-Agent"),
        deadline=getattr(request.state, "deadline", None),
        is_disconnected=request.is_disconnected,
    )
