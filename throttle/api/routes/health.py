from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from throttle.adapters.rate_limit.base import AbstractRateLimiter
from throttle.core.rate_limit import get_rate_limiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)]) -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring. Includes the limiter's counters
    (never identifiers) so memory growth between sweeps is visible.

    Returns:
        dict: ``{"status": "ok", "rate_limit": {...}}``.
    """

    return {"status": "ok", "rate_limit": limiter.stats()}
