"""
Request throttling for the store API.

Counters are kept in process memory: the backend serves one shop from a
single worker, so there is no shared store to coordinate with.
"""
import time
import logging
from collections import defaultdict, deque
from typing import Deque, Dict
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger(__name__)

UNTHROTTLED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


class RateLimiter:
    """Sliding window of request times per caller key."""

    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        self.enabled = True
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)

    def hit(self, key: str) -> bool:
        """Record one request for key; False once the window is full."""
        if not self.enabled:
            return True

        now = time.monotonic()
        window = self.hits[key]
        while window and window[0] <= now - self.window:
            window.popleft()

        if len(window) >= self.requests:
            return False
        window.append(now)
        return True

    def reset(self):
        self.hits.clear()


rate_limiter = RateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS)


def caller_key(request: Request) -> str:
    # Signed-in counters follow the vendor token, so two tills behind one shop IP
    # do not share a bucket
    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer "):
        return f"token:{auth[7:20]}"
    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if cookie:
        return f"token:{cookie[:13]}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNTHROTTLED_PATHS:
            return await call_next(request)

        key = caller_key(request)
        if not rate_limiter.hit(key):
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests. Please wait a moment and try again."},
            )
        return await call_next(request)
