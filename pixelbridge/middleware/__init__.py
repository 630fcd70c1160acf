"""
Middleware modules for the Pixel Bridge service.
"""

from .rate_limit import RateLimiter, RateLimitMiddleware

__all__ = [
    "RateLimiter",
    "RateLimitMiddleware"
]
