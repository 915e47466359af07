"""Endpoint admission policies."""

from dataclasses import replace
from typing import Any, Dict, Iterable, Mapping, Optional

from restaurant.app.core.logging import get_logger
from restaurant.app.middleware.rate_limit.models import RateLimitPolicy

logger = get_logger(__name__)

MINUTE_MS = 60 * 1000

GENERAL_ENDPOINT = "general"
DDOS_ENDPOINT = "ddos"

DEFAULT_POLICIES: Dict[str, RateLimitPolicy] = {
    "reservations": RateLimitPolicy(
        endpoint="reservations",
        window_ms=15 * MINUTE_MS,
        max_requests=5,
        message="Too many reservation requests. Please try again in 15 minutes.",
        skip_successful_requests=False,
    ),
    "catering": RateLimitPolicy(
        endpoint="catering",
        window_ms=30 * MINUTE_MS,
        max_requests=3,
        message="Too many catering requests. Please try again in 30 minutes.",
        skip_successful_requests=False,
    ),
    "feedback": RateLimitPolicy(
        endpoint="feedback",
        window_ms=60 * MINUTE_MS,
        max_requests=10,
        message="Too many feedback submissions. Please try again in 1 hour.",
        skip_successful_requests=True,
    ),
    "availability": RateLimitPolicy(
        endpoint="availability",
        window_ms=5 * MINUTE_MS,
        max_requests=30,
        message="Too many availability checks. Please slow down.",
        skip_successful_requests=True,
    ),
    GENERAL_ENDPOINT: RateLimitPolicy(
        endpoint=GENERAL_ENDPOINT,
        window_ms=15 * MINUTE_MS,
        max_requests=100,
        message="Too many requests. Please try again later.",
        skip_successful_requests=True,
    ),
    "admin": RateLimitPolicy(
        endpoint="admin",
        window_ms=5 * MINUTE_MS,
        max_requests=50,
        message="Too many admin requests. Please slow down.",
        skip_successful_requests=False,
    ),
}

# Always-on guard, not selectable through resolve().
DDOS_POLICY = RateLimitPolicy(
    endpoint=DDOS_ENDPOINT,
    window_ms=1 * MINUTE_MS,
    max_requests=20,
    message="Too many requests from this IP. Please slow down.",
)


class PolicyTable:
    """Static mapping from endpoint name to policy, fixed at startup.

    Unknown endpoint names resolve to the ``general`` policy.
    """

    def __init__(
        self,
        policies: Optional[Mapping[str, RateLimitPolicy]] = None,
        ddos_policy: RateLimitPolicy = DDOS_POLICY,
    ):
        table = dict(policies if policies is not None else DEFAULT_POLICIES)
        if GENERAL_ENDPOINT not in table:
            raise ValueError("policy table must define a 'general' policy")
        if DDOS_ENDPOINT in table:
            raise ValueError("'ddos' is reserved for the always-on guard")
        self._policies = table
        self._ddos_policy = ddos_policy

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, Mapping[str, Any]]) -> "PolicyTable":
        """Build a table from the defaults with per-endpoint field overrides.

        Args:
            overrides: ``{endpoint: {field: value}}``; fields are those of
                RateLimitPolicy except ``endpoint``. Unknown endpoints are added
                on top of the general policy.

        Raises:
            ValueError: If an override names an unknown field or yields an
                invalid policy.
        """
        table = dict(DEFAULT_POLICIES)
        ddos_policy = DDOS_POLICY
        allowed_fields = {"window_ms", "max_requests", "message", "skip_successful_requests"}

        for endpoint, fields in overrides.items():
            unknown = set(fields) - allowed_fields
            if unknown:
                raise ValueError(f"Unknown rate limit override fields for {endpoint}: {sorted(unknown)}")
            if endpoint == DDOS_ENDPOINT:
                ddos_policy = replace(ddos_policy, **fields)
                continue
            base = table.get(endpoint) or replace(table[GENERAL_ENDPOINT], endpoint=endpoint)
            table[endpoint] = replace(base, **fields)
            logger.info(f"Rate limit policy overridden for {endpoint}: {dict(fields)}")

        return cls(table, ddos_policy=ddos_policy)

    @property
    def ddos(self) -> RateLimitPolicy:
        return self._ddos_policy

    def names(self) -> Iterable[str]:
        return self._policies.keys()

    def resolve(self, endpoint: str) -> RateLimitPolicy:
        """Return the policy for an endpoint, falling back to ``general``."""
        policy = self._policies.get(endpoint)
        if policy is None:
            logger.debug(f"No rate limit policy for '{endpoint}', using general")
            return self._policies[GENERAL_ENDPOINT]
        return policy

    def window_for(self, endpoint: str) -> int:
        """Window length used when sweeping keys of the given endpoint."""
        if endpoint == DDOS_ENDPOINT:
            return self._ddos_policy.window_ms
        return self.resolve(endpoint).window_ms
