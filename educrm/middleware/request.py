"""Request id, deadline and access logging."""

import asyncio
import logging
import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from educrm.exceptions import ErrorCode, error_response
from educrm.utils.request_context import clear_all_context, new_request_id, set_request_id

logger = logging.getLogger("educrm.access")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Outermost middleware.

    Assigns the request id (reusing a well-formed incoming ``X-Request-ID``),
    stamps the deadline on ``request.state`` and bounds the request by the
    configured timeout.
    """

    def __init__(self, app, timeout: float):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        clear_all_context()
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _VALID_REQUEST_ID.match(incoming) else new_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id

        started = time.monotonic()
        request.state.deadline = started + self.timeout

        try:
            response = await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"{request.method} {request.url.path} timed out after {self.timeout}s")
            response = error_response(
                ErrorCode.INTERNAL_ERROR,
                "Request timed out",
                {"retryable": True},
            )

        elapsed_ms = (time.monotonic() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        clear_all_context()
        return response
