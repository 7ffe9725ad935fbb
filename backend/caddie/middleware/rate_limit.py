"""
CaddieAI Backend — Rate Limiting Middleware
============================================

What:  Per-client sliding-window rate limiter.
How:   Keeps the timestamps of each client's requests inside the window;
       a client at the limit gets 429 with a Retry-After header.

Single-process only: the counters live in this worker's memory, the same
constraint as the realtime session registry.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from caddie.config import settings
from caddie.exceptions import RateLimitExceededError
from caddie.middleware.logging import client_address
from caddie.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Sweep idle clients after this many recorded requests
SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, max_requests: int = None, window_seconds: int = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client = client_address(request)
        now = time.time()
        window_start = now - self.window_seconds

        timestamps = self._requests[client]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                client, len(timestamps), self.window_seconds,
            )
            # Raised errors skip FastAPI's handlers inside BaseHTTPMiddleware,
            # so the error body is rendered here
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": error.message,
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % SWEEP_EVERY == 0:
            self._sweep(window_start)

        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        idle = [c for c, ts in self._requests.items() if not ts or ts[-1] <= window_start]
        for client in idle:
            del self._requests[client]
        if idle:
            logger.debug("Dropped rate-limit state for %d idle clients", len(idle))
