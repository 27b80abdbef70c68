"""Per-client request rate limiting.

Each client IP may make `limit` requests in any sliding window of
`window` seconds. Requests over the limit get a 429 JSON response.
Every response carries X-RateLimit-Limit and X-RateLimit-Remaining.
"""

import math
import threading
import time
from collections import deque
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp


class SlidingWindowLimiter:
    """Thread-safe sliding window counter keyed by client."""

    def __init__(self, limit: int, window: float, clock: Callable[[], float] = time.monotonic):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")

        self.limit = limit
        self.window = window
        self._clock = clock
        self._hits: dict[str, deque] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, int, int]:
        """Record one request for key.

        Returns:
            (allowed, remaining, retry_after) where retry_after is the number
            of whole seconds until the oldest request leaves the window
        """
        with self._lock:
            now = self._clock()
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - self.window:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = max(1, math.ceil(hits[0] + self.window - now))
                return False, 0, retry_after

            hits.append(now)
            return True, self.limit - len(hits), 0


def client_ip(request: Request) -> str:
    """Best guess at the caller's address, honouring reverse proxy headers."""
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        return forwarded.split(',')[0].strip()

    real_ip = request.headers.get('x-real-ip')
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host
    return 'unknown'


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the request budget with 429."""

    def __init__(self, app: ASGIApp, limit: int, window: float,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(app)
        self.limiter = SlidingWindowLimiter(limit, window, clock)

    async def dispatch(self, request: Request, call_next):
        allowed, remaining, retry_after = self.limiter.hit(client_ip(request))
        headers = {
            'X-RateLimit-Limit': str(self.limiter.limit),
            'X-RateLimit-Remaining': str(remaining),
        }

        if not allowed:
            headers['Retry-After'] = str(retry_after)
            return JSONResponse({
                'error': 'Rate limit exceeded',
                'message': 'Too many requests. Please try again later.',
                'retry_after': retry_after,
            }, status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
