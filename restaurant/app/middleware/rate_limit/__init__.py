"""Rate limiting for the restaurant API.

Sliding-window admission control keyed by endpoint and client, with an
in-memory store (single instance) or a Redis store.
"""

from restaurant.app.middleware.rate_limit.admission import AdmissionController, now_ms
from restaurant.app.middleware.rate_limit.client import RequestMeta, identify
from restaurant.app.middleware.rate_limit.http import (
    DDoSGuardMiddleware,
    RateLimit,
    get_admission_controller,
    rate_limit_response,
    release_on_success,
)
from restaurant.app.middleware.rate_limit.models import (
    AdmissionResult,
    Allowed,
    ClientKey,
    RateLimitPolicy,
    RateLimitStats,
    RateLimitStatus,
    Rejected,
    ReleaseToken,
    WindowDecision,
)
from restaurant.app.middleware.rate_limit.policies import (
    DDOS_POLICY,
    DEFAULT_POLICIES,
    PolicyTable,
)
from restaurant.app.middleware.rate_limit.store import (
    InMemoryStore,
    RateLimitStore,
    RedisStore,
    create_store,
)
from restaurant.app.middleware.rate_limit.window import (
    WindowCounter,
    prune,
    validate_rate_limit,
)

__all__ = [
    # Models
    "AdmissionResult",
    "Allowed",
    "ClientKey",
    "RateLimitPolicy",
    "RateLimitStats",
    "RateLimitStatus",
    "Rejected",
    "ReleaseToken",
    "WindowDecision",
    # Policies
    "DDOS_POLICY",
    "DEFAULT_POLICIES",
    "PolicyTable",
    # Stores
    "InMemoryStore",
    "RateLimitStore",
    "RedisStore",
    "create_store",
    # Counting
    "WindowCounter",
    "prune",
    "validate_rate_limit",
    # Main classes
    "AdmissionController",
    "RequestMeta",
    "identify",
    "now_ms",
    "DDoSGuardMiddleware",
    "RateLimit",
    "get_admission_controller",
    "rate_limit_response",
    "release_on_success",
]
