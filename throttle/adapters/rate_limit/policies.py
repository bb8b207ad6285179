"""Named rate limit policies used by the HTTP routes.

Defaults come from settings so each preset can be tuned per environment
(e.g. ``RATE_LIMIT_LOGIN_REQUESTS=3``) without touching route code.
"""

from __future__ import annotations

from throttle.adapters.rate_limit.base import RateLimitPolicy
from throttle.core.config import RateLimitSettings, settings
from throttle.core.errors import InvalidPolicyError

REGISTRATION = "registration"
API = "api"
LOGIN = "login"

POLICY_NAMES = (REGISTRATION, API, LOGIN)


def _policy_from_settings(name: str, cfg: RateLimitSettings) -> RateLimitPolicy:
    return RateLimitPolicy(
        max_requests=getattr(cfg, f"{name}_requests"),
        window_seconds=getattr(cfg, f"{name}_window_seconds"),
        name=name,
    )


def build_policies(rate_limit_settings: RateLimitSettings | None = None) -> dict[str, RateLimitPolicy]:
    """Build every named policy from settings.

    Args:
        rate_limit_settings: Optional overrides; defaults to global settings.

    Returns:
        Mapping of policy name to validated policy.

    Raises:
        InvalidPolicyError: If a configured value is out of range.
    """

    cfg = rate_limit_settings or settings.rate_limit
    return {name: _policy_from_settings(name, cfg) for name in POLICY_NAMES}


def get_policy(name: str, rate_limit_settings: RateLimitSettings | None = None) -> RateLimitPolicy:
    """Resolve a single named policy without building the others.

    Raises:
        InvalidPolicyError: If the name is unknown or its values are invalid.
    """

    if name not in POLICY_NAMES:
        raise InvalidPolicyError(
            code="invalid_policy",
            message=f"Unknown rate limit policy: '{name}'",
            details={"policy": name, "hint": f"Known policies: {', '.join(POLICY_NAMES)}"},
        )
    return _policy_from_settings(name, rate_limit_settings or settings.rate_limit)
