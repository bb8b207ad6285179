"""Projection of a limiter result onto response headers."""

from __future__ import annotations

import math

from throttle.adapters.rate_limit.base import RateLimitResult


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Map a result to X-RateLimit-* headers, plus Retry-After when blocked.

    X-RateLimit-Reset carries whole seconds until the window ends (rounded up),
    not an epoch timestamp.
    """

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(max(0, int(math.ceil(result.reset_in)))),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers
