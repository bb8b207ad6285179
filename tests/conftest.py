"""Pytest configuration and fixtures shared across all test modules.

Environment defaults must be set before anything imports ``throttle.core.config``.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_INCLUDE_HEADERS", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest


class FakeClock:
    """Deterministic clock used to test window expiry."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
