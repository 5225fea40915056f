"""API rate limiting."""
import logging
import math
import time
from datetime import datetime, timedelta, timezone

from cachetools import TTLCache
from fastapi import HTTPException, Request, Response, status

from roblox_intel.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class RateLimitExceeded(HTTPException):
    """Client used up its window; ``retry_after`` is in whole seconds."""

    def __init__(self, retry_after: int, reset_at: str):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait before trying again.",
            headers={"Retry-After": str(retry_after), "X-RateLimit-Reset": reset_at},
        )
        self.retry_after = retry_after


def get_client_identifier(request: Request) -> str:
    """Best-effort client IP, honouring common proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value

    return request.client.host if request.client else "unknown"


class RateLimiter:
    """Fixed-window request limiter used as a route dependency.

    Windows live in a TTLCache so expired clients drop out on their own.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: TTLCache = TTLCache(maxsize=10_000, ttl=window_seconds)

    def hit(self, identifier: str) -> tuple[bool, int, float]:
        """Count one request. Returns (allowed, remaining, seconds until reset)."""
        now = time.monotonic()
        window = self._windows.get(identifier)
        if window is None or now > window[1]:
            window = [0, now + self.window_seconds]
            self._windows[identifier] = window

        window[0] += 1
        allowed = window[0] <= self.max_requests
        remaining = max(0, self.max_requests - window[0])
        reset_in = max(0.0, window[1] - now)
        return allowed, remaining, reset_in

    def reset(self):
        self._windows.clear()

    async def __call__(self, request: Request, response: Response):
        identifier = get_client_identifier(request)
        allowed, remaining, reset_in = self.hit(identifier)
        retry_after = math.ceil(reset_in)
        reset_at = (datetime.now(timezone.utc) + timedelta(seconds=reset_in)).isoformat()

        if not allowed:
            logger.warning(f"Rate limit exceeded: {identifier} on {request.url.path} ({self.name})")
            raise RateLimitExceeded(retry_after, reset_at)

        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = reset_at


rate_limit = RateLimiter(
    "default",
    max_requests=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
)
