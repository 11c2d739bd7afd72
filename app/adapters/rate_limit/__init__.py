"""Rate limiting adapters.

The API pipeline depends on ``AbstractRateLimiter`` only, so the in-memory
fixed-window store can be replaced by a shared one (e.g. Redis) when the
service runs as more than one process.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
