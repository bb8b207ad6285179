"""Tests for policy validation, named presets and header projection."""

import math

import pytest

from throttle.adapters.rate_limit.base import RateLimitPolicy, RateLimitResult
from throttle.adapters.rate_limit.headers import rate_limit_headers
from throttle.adapters.rate_limit.policies import build_policies, get_policy
from throttle.core.config import RateLimitSettings
from throttle.core.errors import InvalidPolicyError


class TestRateLimitPolicy:
    """Validation happens at construction time."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_requests": 0, "window_seconds": 60},
            {"max_requests": -3, "window_seconds": 60},
            {"max_requests": 1, "window_seconds": 0},
            {"max_requests": 1, "window_seconds": -1.5},
            {"max_requests": 1, "window_seconds": math.nan},
            {"max_requests": 1, "window_seconds": math.inf},
            {"max_requests": 2.5, "window_seconds": 60},
            {"max_requests": True, "window_seconds": 60},
        ],
    )
    def test_invalid_values_raise(self, kwargs: dict) -> None:
        with pytest.raises(InvalidPolicyError) as exc_info:
            RateLimitPolicy(**kwargs)
        assert exc_info.value.code == "invalid_policy"

    def test_valid_policy_is_immutable(self) -> None:
        policy = RateLimitPolicy(max_requests=1, window_seconds=0.5, name="burst")

        with pytest.raises(AttributeError):
            policy.max_requests = 2  # type: ignore[misc]


class TestNamedPolicies:
    def test_defaults_match_documented_presets(self) -> None:
        policies = build_policies(RateLimitSettings())

        assert policies["registration"] == RateLimitPolicy(10, 60.0, "registration")
        assert policies["api"] == RateLimitPolicy(100, 60.0, "api")
        assert policies["login"] == RateLimitPolicy(5, 60.0, "login")

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RATE_LIMIT_LOGIN_REQUESTS", "3")
        monkeypatch.setenv("RATE_LIMIT_LOGIN_WINDOW_SECONDS", "120")

        policy = get_policy("login", RateLimitSettings())

        assert policy.max_requests == 3
        assert policy.window_seconds == 120

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(InvalidPolicyError) as exc_info:
            get_policy("signup")
        assert exc_info.value.details["policy"] == "signup"

    def test_invalid_override_is_not_clamped(self) -> None:
        with pytest.raises(InvalidPolicyError):
            get_policy("api", RateLimitSettings(api_requests=0))


class TestRateLimitHeaders:
    def test_allowed_result_has_no_retry_after(self) -> None:
        headers = rate_limit_headers(RateLimitResult(allowed=True, remaining=7, reset_in=59.2, limit=10))

        assert headers == {
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "7",
            "X-RateLimit-Reset": "60",
        }

    def test_blocked_result_includes_retry_after(self) -> None:
        headers = rate_limit_headers(RateLimitResult(allowed=False, remaining=0, reset_in=12.01, limit=5))

        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["X-RateLimit-Reset"] == "13"
        assert headers["Retry-After"] == "13"


def test_get_policy_ignores_misconfigured_sibling_presets() -> None:
    cfg = RateLimitSettings(api_requests=0)

    policy = get_policy("login", cfg)

    assert policy == RateLimitPolicy(5, 60.0, "login")
    with pytest.raises(InvalidPolicyError):
        build_policies(cfg)
