"""
ContactBook Backend - Rate Limiting Middleware
===============================================

What:  Per-client fixed-window rate limiter.
Why:   Protects the API (and bcrypt in particular) from request floods.
How:   The middleware asks a RateLimitStore whether the client address may
       make one more request; the store owns the counting.
When:  Runs after request ID / security headers / CORS, before request
       logging, so a rejected request never reaches a route.

Algorithm: Fixed Window Counter
    1. Each key (client address) has a window start and a count
    2. If the window started more than `window` seconds ago, restart it:
       start = now, count = 0
    3. count += 1
    4. count > limit → reject with 429 and Retry-After = seconds left in
       the window

    With the defaults (200 per 60 s), the 201st request in a window is
    rejected and the first request after the window expires is accepted.
    Bursts of up to 2x the limit are possible across a window boundary.

Store abstraction:
    InMemoryFixedWindowStore is process-local and is only touched from the
    event loop, so it needs no locking. A multi-instance deployment swaps in
    a shared store (e.g. Redis INCR + EXPIRE) implementing the same
    ``hit(key)`` contract, passed via ``create_app(rate_limit_store=...)``.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from contactbook.config import settings
from contactbook.exceptions import RateLimitExceededError
from contactbook.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    count: int
    retry_after: int = 0


class RateLimitStore(Protocol):
    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for ``key`` and decide whether it may proceed."""
        ...


class InMemoryFixedWindowStore:
    """
    Fixed-window counters held in a dict.

    ``clock`` defaults to time.monotonic; tests inject a fake one to step
    over window boundaries without sleeping.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        # key → (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start > self.window:
            start, count = now, 0

        count += 1
        self._windows[key] = (start, count)

        if count > self.limit:
            retry_after = max(1, math.ceil(start + self.window - now))
            return RateLimitDecision(allowed=False, count=count, retry_after=retry_after)
        return RateLimitDecision(allowed=True, count=count)

    def prune(self) -> int:
        """Drop expired windows. Returns the number removed."""
        now = self._clock()
        expired = [k for k, (start, _) in self._windows.items() if now - start > self.window]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects over-limit clients with 429 RATE_LIMIT_EXCEEDED.

    Excluded paths:
        /health and the API docs stay reachable regardless of load.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Expired windows are pruned every this many requests
    PRUNE_INTERVAL = 1000

    def __init__(self, app: ASGIApp, store: Optional[RateLimitStore] = None):
        super().__init__(app)
        # An empty store is falsy (len() == 0)
        if store is None:
            store = InMemoryFixedWindowStore(
                limit=settings.rate_limit_requests,
                window=settings.rate_limit_window,
            )
        self.store = store
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        decision = self.store.hit(client_ip)

        self._seen += 1
        if self._seen % self.PRUNE_INTERVAL == 0 and hasattr(self.store, "prune"):
            removed = self.store.prune()
            if removed:
                logger.debug("Pruned %d expired rate-limit windows", removed)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in current window",
                client_ip,
                decision.count,
            )
            exc = RateLimitExceededError(retry_after=decision.retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": {
                        "code": exc.code,
                        "message": exc.message,
                        "requestId": get_request_id(request),
                    }
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
