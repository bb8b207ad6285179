"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on ``rate_limit("<policy>")`` only.
- Explicit ownership: the limiter lives on ``app.state`` and is created by
  the application factory, so tests can build isolated apps.
- Safe defaults: forwarded headers and response headers are configurable.

Rate limiting strategy:
- Fixed window per client address and policy.
- Client address comes from X-Forwarded-For (first hop), then X-Real-IP,
  then the socket peer.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, HTTPException, Request, Response, status

from throttle.adapters.rate_limit.base import AbstractRateLimiter
from throttle.adapters.rate_limit.headers import rate_limit_headers
from throttle.adapters.rate_limit.in_memory import InMemoryRateLimiter
from throttle.adapters.rate_limit.policies import get_policy
from throttle.core.config import settings
from throttle.core.errors import EmptyIdentifierError

logger = logging.getLogger(__name__)

_STATE_ATTR = "rate_limiter"


def install_rate_limiter(app: FastAPI, limiter: AbstractRateLimiter | None = None) -> AbstractRateLimiter:
    """Attach a limiter to the app so route dependencies can reach it.

    Args:
        app: FastAPI application.
        limiter: Limiter to use; a fresh in-memory limiter when omitted.

    Returns:
        AbstractRateLimiter: The installed limiter.
    """

    # An empty limiter is falsy (it defines __len__), so compare against None.
    installed = limiter if limiter is not None else InMemoryRateLimiter()
    setattr(app.state, _STATE_ATTR, installed)
    return installed


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the application serving this request.

    Raises:
        RuntimeError: If no limiter was installed on the app.
    """

    limiter = getattr(request.app.state, _STATE_ATTR, None)
    if limiter is None:
        raise RuntimeError("No rate limiter installed; call install_rate_limiter(app) first")
    return limiter


def client_identifier(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced limiter key (``ip:<address>``).

    Raises:
        EmptyIdentifierError: If no client address can be determined.
    """

    address: str | None = None
    if settings.app.trust_forwarded_headers:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            address = forwarded_for.split(",")[0].strip() or None
        if not address:
            address = (request.headers.get("x-real-ip") or "").strip() or None

    if not address and request.client:
        address = request.client.host

    if not address:
        raise EmptyIdentifierError(
            code="empty_identifier",
            message="Unable to determine client address for rate limiting",
        )
    return f"ip:{address}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit(policy_name: str) -> Callable[[Request, Response], Awaitable[None]]:
    """Create a FastAPI dependency enforcing the named policy.

    The policy is resolved eagerly so a typo in a route declaration fails
    at import time rather than on the first request.

    Args:
        policy_name: One of the names in ``throttle.adapters.rate_limit.policies``.

    Returns:
        Dependency callable for ``Depends(...)``.

    Raises:
        InvalidPolicyError: If the policy is unknown or misconfigured.
    """

    get_policy(policy_name)

    async def enforce_rate_limit(request: Request, response: Response) -> None:
        """Count this request and raise 429 Too Many Requests when over budget.

        Raises:
            HTTPException: 429 when the client exceeded the policy.
            EmptyIdentifierError: If the client cannot be identified.
        """

        if not settings.app.rate_limit_enabled:
            return

        policy = get_policy(policy_name)
        limiter = get_rate_limiter(request)
        key = f"{policy.name}:{client_identifier(request)}"
        key_hash = _hash_limiter_key(key)

        result = limiter.check(key, policy)
        headers = rate_limit_headers(result) if settings.app.rate_limit_include_headers else {}

        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "policy": policy.name,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": policy.window_seconds,
                },
            )
            response.headers.update(headers)
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": policy.name,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": policy.window_seconds,
                "retry_after_s": result.retry_after_seconds,
            },
        )

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=headers or None,
        )

    return enforce_rate_limit
