"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory limiter and later migrate to Redis or another shared store
without changing the API layer.
"""

from throttle.adapters.rate_limit.base import AbstractRateLimiter, RateLimitPolicy, RateLimitResult
from throttle.adapters.rate_limit.headers import rate_limit_headers
from throttle.adapters.rate_limit.in_memory import InMemoryRateLimiter
from throttle.adapters.rate_limit.sweeper import SweepTask

__all__ = [
    "AbstractRateLimiter",
    "InMemoryRateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
    "SweepTask",
    "rate_limit_headers",
]
