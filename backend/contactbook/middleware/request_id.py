"""
ContactBook Backend - Request ID Middleware
============================================

What:  Assigns a correlation ID to each request and echoes it back.
Why:   Every log line and every error body for one request share the same
       ID, so a client can quote it and we can find the whole trail.
How:   Reuse the inbound X-Request-Id header if the client sent one,
       otherwise generate a UUID4. Store it in a ContextVar (for loggers)
       and in request.state (for exception handlers), then set it on the
       response.
When:  Outermost middleware: runs before everything else, so even 429
       responses from the rate limiter carry the header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"

# Coroutine-local: concurrent requests on the same event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id(request: Request) -> str:
    """Request ID for ``request``, falling back to the current context."""
    return getattr(request.state, "request_id", None) or request_id_var.get("")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
