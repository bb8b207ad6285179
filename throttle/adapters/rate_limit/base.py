"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from throttle.core.errors import InvalidPolicyError


@dataclass(frozen=True)
class RateLimitPolicy:
    """How many actions one identifier may take per window.

    Attributes:
        max_requests: Ceiling on attempts per window (>= 1).
        window_seconds: Window length in seconds (> 0).
        name: Optional label used in logs (e.g., "login").

    Raises:
        InvalidPolicyError: If either bound is out of range.
    """

    max_requests: int
    window_seconds: float
    name: str = "custom"

    def __post_init__(self) -> None:
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int):
            raise InvalidPolicyError(
                code="invalid_policy",
                message="max_requests must be an integer",
                details={"field": "max_requests", "actual_value": self.max_requests, "policy": self.name},
            )
        if self.max_requests < 1:
            raise InvalidPolicyError(
                code="invalid_policy",
                message="max_requests must be >= 1",
                details={
                    "field": "max_requests",
                    "min_value": 1,
                    "actual_value": self.max_requests,
                    "policy": self.name,
                },
            )
        if not self.window_seconds > 0 or math.isinf(self.window_seconds):
            raise InvalidPolicyError(
                code="invalid_policy",
                message="window_seconds must be a finite number > 0",
                details={"field": "window_seconds", "actual_value": self.window_seconds, "policy": self.name},
            )


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_in: Seconds until the current window ends.
        limit: Max requests per window.
    """

    allowed: bool
    remaining: int
    reset_in: float
    limit: int

    @property
    def retry_after_seconds(self) -> int | None:
        """Whole seconds a blocked caller should wait, None when allowed."""
        if self.allowed:
            return None
        return max(0, int(math.ceil(self.reset_in)))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, policy: RateLimitPolicy, *, now: float | None = None) -> RateLimitResult:
        """Count one attempt for identifier and decide whether it may proceed.

        Args:
            identifier: Unique subject key (e.g., "ip:1.2.3.4", account id).
            policy: Limit and window to enforce.
            now: Optional timestamp on the limiter's clock; defaults to the clock.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: float | None = None) -> int:
        """Drop state whose window already ended. Returns the number removed."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        """Return counters safe to expose on health endpoints (no identifiers)."""
        raise NotImplementedError
