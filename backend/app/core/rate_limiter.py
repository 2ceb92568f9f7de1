"""
Per-client request throttling for the REST API.

Sliding window kept in process memory: every uvicorn worker counts on its own.
WebSocket traffic never passes through here (HTTP middleware only).
"""
import logging
import time
from collections import deque
from typing import Deque, Dict, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")
SWEEP_INTERVAL_SECONDS = 300


class RateLimiter:
    """At most `requests` hits per client within the last `window` seconds."""

    def __init__(self, requests: int = 100, window: int = 60):
        self.requests = requests
        self.window = window
        self.hits: Dict[str, Deque[float]] = {}
        self._last_sweep = time.monotonic()

    def is_allowed(self, client_id: str, now: float | None = None) -> Tuple[bool, int]:
        """Record a hit if there is room. Returns (allowed, remaining)."""
        now = time.monotonic() if now is None else now
        if now - self._last_sweep > SWEEP_INTERVAL_SECONDS:
            self.sweep(now)

        hits = self.hits.setdefault(client_id, deque())
        while hits and hits[0] <= now - self.window:
            hits.popleft()

        if len(hits) >= self.requests:
            return False, 0
        hits.append(now)
        return True, self.requests - len(hits)

    def sweep(self, now: float):
        """Forget clients with no hits inside the window."""
        cutoff = now - self.window
        for client_id in [c for c, hits in self.hits.items() if not hits or hits[-1] <= cutoff]:
            del self.hits[client_id]
        self._last_sweep = now
        logger.debug(f"[RateLimit] Sweep done, tracking {len(self.hits)} clients")


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, requests: int = settings.RATE_LIMIT_REQUESTS,
                 window: int = settings.RATE_LIMIT_WINDOW_SECONDS):
        super().__init__(app)
        self.limiter = RateLimiter(requests=requests, window=window)

    def _limit_headers(self, remaining: int) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limiter.requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Window": str(self.limiter.window),
        }

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        allowed, remaining = self.limiter.is_allowed(client_id)
        if not allowed:
            logger.warning(f"[RateLimit] {client_id} exceeded limit on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": f"Rate limit exceeded. Try again in {self.limiter.window} seconds."},
                headers={"Retry-After": str(self.limiter.window), **self._limit_headers(0)},
            )

        response = await call_next(request)
        response.headers.update(self._limit_headers(remaining))
        return response
