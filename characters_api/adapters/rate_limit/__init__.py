"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter`` only, so the in-process
sliding window can later be swapped for a shared store (e.g. Redis) without
touching the middleware.
"""

from characters_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from characters_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
]
