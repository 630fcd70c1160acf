"""
Rate limiting middleware for API endpoints.

Conversions hit the GitHub API several times each and count against the
token's hourly quota, so they get a much tighter per-IP limit than the
read-only endpoints. Uses in-memory storage, which is enough for a
single-process deployment.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Dict, List, Optional, Tuple
import time


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.
    """

    def __init__(self, clock=time.time):
        # Storage: {key: [timestamp, ...]}
        self.requests: Dict[str, List[float]] = {}
        self.cleanup_interval = 300  # Clean up old entries every 5 minutes
        self.clock = clock
        self.last_cleanup = clock()

    def _cleanup(self, now: float):
        """Remove old entries to prevent memory leak."""
        if now - self.last_cleanup > self.cleanup_interval:
            cutoff = now - 3600  # Remove entries older than 1 hour
            for key in list(self.requests.keys()):
                self.requests[key] = [ts for ts in self.requests[key] if ts > cutoff]
                if not self.requests[key]:
                    del self.requests[key]
            self.last_cleanup = now

    def is_allowed(self, key: str, limit: int, window: int) -> Tuple[bool, Dict[str, str]]:
        """
        Check if request is allowed under rate limit.

        Args:
            key: Unique identifier for rate limit (bucket + client IP)
            limit: Maximum number of requests allowed
            window: Time window in seconds

        Returns:
            Tuple of (allowed, headers_dict) where headers_dict contains
            rate limit information for response headers
        """
        now = self.clock()
        self._cleanup(now)

        window_start = now - window
        current = [ts for ts in self.requests.get(key, []) if ts > window_start]

        allowed = len(current) < limit
        if allowed:
            current.append(now)
        self.requests[key] = current

        remaining = max(0, limit - len(current))
        reset_time = int(min(current) + window) if current else int(now + window)

        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(reset_time)
        }

        return allowed, headers


# (bucket, limit, window seconds, message)
CONVERSION_LIMIT = ("convert", 10, 60, "Too many conversions. Please wait a minute and try again.")
ARCHIVE_WRITE_LIMIT = ("archive", 30, 60, "Too many archive changes. Please slow down.")
GENERAL_LIMIT = ("api", 100, 60, "Too many requests. Please slow down.")

# Health and pre-flight endpoints polled by the upload page
EXEMPT_PATHS = ("/", "/status", "/config-check")


def classify(method: str, path: str) -> Optional[tuple]:
    """Pick the rate limit bucket for a request, or None if it is not limited."""
    if path in EXEMPT_PATHS:
        return None
    if path in ("/upload", "/use-image"):
        return CONVERSION_LIMIT
    if path.startswith("/images/") and method == "DELETE":
        return ARCHIVE_WRITE_LIMIT
    return GENERAL_LIMIT


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to apply per-IP rate limiting to requests.

    Conversions (/upload, /use-image): 10 requests/minute
    Archive deletes: 30 requests/minute
    Everything else except /, /status and /config-check: 100 requests/minute
    """

    def __init__(self, app, limiter: Optional[RateLimiter] = None, enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter or RateLimiter()
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        bucket = classify(request.method, request.url.path)
        if bucket is None:
            return await call_next(request)

        name, limit, window, message = bucket
        client_ip = request.client.host if request.client else "unknown"

        allowed, headers = self.limiter.is_allowed(f"{name}:{client_ip}", limit, window)
        if not allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": message},
                headers=headers
            )

        response = await call_next(request)
        for header_name, header_value in headers.items():
            response.headers[header_name] = header_value
        return response
