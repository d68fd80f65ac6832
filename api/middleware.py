import os
import time
import logging
from collections import defaultdict, deque
from threading import Lock
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

# every /page call costs an outbound fetch (and proxy credits), so cap per client
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "30"))   # requests allowed per window
RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "60"))       # window in seconds

UNLIMITED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


def client_ip(request: Request) -> str:
    # honour X-Forwarded-For if behind a proxy / load balancer
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limit per client ip, held in process memory."""

    def __init__(self, app, requests_per_window: int = RATE_LIMIT_REQUESTS, window_seconds: int = RATE_LIMIT_WINDOW):
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self._hits: dict[str, deque] = defaultdict(deque)
        self._lock = Lock()

    def _retry_after(self, ip: str, now: float) -> Optional[int]:
        """Record a hit for ip, or return seconds to wait if the window is full."""
        with self._lock:
            hits = self._hits[ip]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()
            if len(hits) >= self.requests_per_window:
                return int(self.window_seconds - (now - hits[0])) + 1
            hits.append(now)
        return None

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        retry_after = self._retry_after(ip, time.time())
        if retry_after is not None:
            logger.warning("Rate limit hit for IP %s", ip)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please slow down.", "code": "rate_limit_exceeded"},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "%s %s from %s -> %d (%dms)",
            request.method,
            request.url.path,
            client_ip(request),
            response.status_code,
            duration_ms,
        )
        return response
