"""Background reclamation of expired limiter entries.

The sweep only frees memory. Checks already roll stale windows over on their
own, so a late or skipped sweep never changes a decision.
"""

from __future__ import annotations

import logging
import threading

from throttle.adapters.rate_limit.base import AbstractRateLimiter
from throttle.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0


class SweepTask:
    """Daemon thread calling ``limiter.sweep()`` on a fixed interval.

    Owned by whoever owns the limiter; call ``stop()`` when the limiter is
    discarded so the thread does not outlive it.
    """

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if not interval_seconds > 0:
            raise ValidationAppError(
                code="invalid_sweep_interval",
                message="interval_seconds must be > 0",
                details={"field": "interval_seconds", "actual_value": interval_seconds},
            )

        self.limiter = limiter
        self.interval_seconds = interval_seconds
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sweeping in the background. No-op when already running."""

        with self._state_lock:
            if self.running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="RateLimitSweeper",
                daemon=True,
            )
            self._thread.start()

        logger.info("rate_limit.sweeper_started", extra={"interval_s": self.interval_seconds})

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop scheduling sweeps and wait for the thread to exit."""

        with self._state_lock:
            thread = self._thread
            self._stop_event.set()

        if thread is None:
            return
        thread.join(timeout=timeout)

        if thread.is_alive():
            # Keep the reference so ``running`` stays truthful; a later stop() can join again.
            logger.warning("rate_limit.sweeper_stop_timeout", extra={"timeout_s": timeout})
            return

        with self._state_lock:
            if self._thread is thread:
                self._thread = None
        logger.info("rate_limit.sweeper_stopped")

    def run_once(self) -> int:
        """Sweep synchronously and return the number of entries removed."""
        return self.limiter.sweep()

    def _run(self, stop_event: threading.Event) -> None:
        # wait() returns True once stop() sets the event
        while not stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception:
                logger.exception("rate_limit.sweep_failed")
