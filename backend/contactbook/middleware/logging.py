"""
ContactBook Backend - Request Logging Middleware
=================================================

What:  One structured line when a request arrives and one when it completes.
Why:   Enables debugging, alerting and latency tracking per request ID.
How:   Reads and JSON-parses the body, redacts sensitive keys, logs
       ``REQUEST: {...}``; after the handler, logs ``RESPONSE: {...}`` with
       status and duration.
When:  Innermost middleware, right before routing. The redacted body is left
       on request.state so exception handlers can include it in error logs.

Log Format:
    REQUEST: {"method": "POST", "path": "/api/v1/auth/login",
              "client": "127.0.0.1", "requestId": "3f0c...",
              "userAgent": "...", "contentType": "application/json",
              "query": {}, "body": {"email": "a@b.co", "password": "***REDACTED***"}}
    RESPONSE: {"method": "POST", "path": "/api/v1/auth/login", "status": 200,
               "durationMs": 87.4, "requestId": "3f0c..."}

What we log vs what we DON'T log:
    Log:        method, path, status, duration, client, user agent, request
                ID, query and JSON body with sensitive keys redacted
    Don't log:  headers (Authorization), raw non-JSON bodies, any value under
                a key containing password/token/authorization/secret/key
"""

import json
import logging
import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from contactbook.middleware.request_id import get_request_id
from contactbook.redaction import redact

logger = logging.getLogger("contactbook.access")


async def _read_json_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if "json" not in content_type:
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return "<unparseable JSON>"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs request and response details.

    Health checks are skipped; probes run every few seconds and would drown
    out real traffic.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        path = request.url.path

        if path == "/health":
            return await call_next(request)

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        rid = get_request_id(request)

        body = redact(await _read_json_body(request))
        query = redact(dict(request.query_params))
        request.state.log_body = body
        request.state.log_query = query

        logger.info(
            "REQUEST: %s",
            json.dumps(
                {
                    "method": request.method,
                    "path": path,
                    "client": client_ip,
                    "requestId": rid,
                    "userAgent": request.headers.get("user-agent"),
                    "contentType": request.headers.get("content-type"),
                    "query": query,
                    "body": body,
                },
                default=str,
            ),
        )

        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler turns this into a 500 outside the middleware stack
            self._log_response(request, path, 500, start_time, rid)
            raise

        self._log_response(request, path, response.status_code, start_time, rid)
        return response

    def _log_response(
        self, request: Request, path: str, status: int, start_time: float, rid: str
    ) -> None:
        duration_ms = (time.perf_counter() - start_time) * 1000
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "RESPONSE: %s",
            json.dumps(
                {
                    "method": request.method,
                    "path": path,
                    "status": status,
                    "durationMs": round(duration_ms, 2),
                    "requestId": rid,
                }
            ),
        )
