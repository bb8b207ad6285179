"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and a restart forgets every counter.
- Thread-safe: one lock guards the whole entry map, so a check is atomic per
  identifier and a sweep never observes a half-updated entry.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from throttle.adapters.rate_limit.base import AbstractRateLimiter, RateLimitPolicy, RateLimitResult
from throttle.core.errors import EmptyIdentifierError

logger = logging.getLogger(__name__)


@dataclass
class _WindowEntry:
    count: int
    window_end: float


class InMemoryRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one fixed window per identifier.

    A window opens on the first attempt seen for an identifier and lasts
    ``policy.window_seconds``. Every attempt inside the window is counted,
    including rejected ones, so a client hammering the endpoint stays blocked
    until the window ends.

    The policy is supplied per call, so one limiter can serve several call
    sites as long as their identifiers are namespaced apart.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning seconds; only differences matter.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _WindowEntry] = {}
        self._checks = 0
        self._denied = 0
        self._swept = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryRateLimiter(entries={len(self._entries)}, checks={self._checks}, denied={self._denied})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def check(self, identifier: str, policy: RateLimitPolicy, *, now: float | None = None) -> RateLimitResult:
        """Count one attempt for identifier under policy.

        Args:
            identifier: Non-empty subject key.
            policy: Validated policy to enforce.
            now: Timestamp on this limiter's clock; read from the clock if omitted.

        Returns:
            RateLimitResult with the decision and the remaining budget.

        Raises:
            EmptyIdentifierError: If identifier is empty or blank.
        """
        if not identifier or not identifier.strip():
            raise EmptyIdentifierError(
                code="empty_identifier",
                message="identifier must be a non-empty string",
                details={"policy": policy.name},
            )

        if now is None:
            now = self._clock()

        with self._lock:
            self._checks += 1
            entry = self._entries.get(identifier)

            if entry is None or entry.window_end <= now:
                self._entries[identifier] = _WindowEntry(count=1, window_end=now + policy.window_seconds)
                logger.debug(
                    "rate_limit.window_started",
                    extra={"policy": policy.name, "window_s": policy.window_seconds},
                )
                return RateLimitResult(
                    allowed=True,
                    remaining=policy.max_requests - 1,
                    reset_in=policy.window_seconds,
                    limit=policy.max_requests,
                )

            # Saturate one past the limit; every value above it means "denied".
            if entry.count <= policy.max_requests:
                entry.count += 1
            reset_in = max(0.0, entry.window_end - now)

            if entry.count > policy.max_requests:
                self._denied += 1
                return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in, limit=policy.max_requests)

            return RateLimitResult(
                allowed=True,
                remaining=max(0, policy.max_requests - entry.count),
                reset_in=reset_in,
                limit=policy.max_requests,
            )

    def sweep(self, now: float | None = None) -> int:
        """Delete entries whose window ended before now.

        Args:
            now: Timestamp on this limiter's clock; read from the clock if omitted.

        Returns:
            Number of entries removed.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.window_end < now]
            for key in expired:
                del self._entries[key]
            self._swept += len(expired)
            remaining = len(self._entries)

        logger.debug(
            "rate_limit.sweep",
            extra={"removed": len(expired), "entries": remaining},
        )
        return len(expired)

    def reset(self, identifier: str | None = None) -> None:
        """Forget one identifier, or every identifier when None."""

        with self._lock:
            if identifier is None:
                self._entries.clear()
            else:
                self._entries.pop(identifier, None)

    def stats(self) -> dict[str, int]:
        """Return lightweight counters without exposing identifiers."""

        with self._lock:
            return {
                "entries": len(self._entries),
                "checks": self._checks,
                "denied": self._denied,
                "swept": self._swept,
            }
