"""Rate limiting data models.

This module contains the policy record, the window decision produced by the
sliding-window counter, and the admission results handed to HTTP handlers.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Union


def ms_to_iso(timestamp_ms: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RateLimitPolicy:
    """Admission policy for one logical endpoint.

    Attributes:
        endpoint: Logical endpoint name (reservations, catering, ...)
        window_ms: Length of the trailing window in milliseconds
        max_requests: Requests admitted per window
        message: User-facing rejection text
        skip_successful_requests: Release the slot when the request succeeds
    """
    endpoint: str
    window_ms: int
    max_requests: int
    message: str = "Too many requests. Please try again later."
    skip_successful_requests: bool = False

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ValueError("endpoint must be a non-empty string")
        if isinstance(self.window_ms, bool) or not isinstance(self.window_ms, int) or self.window_ms <= 0:
            raise ValueError(f"window_ms must be a positive integer (got {self.window_ms!r})")
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int) or self.max_requests <= 0:
            raise ValueError(f"max_requests must be a positive integer (got {self.max_requests!r})")


@dataclass(frozen=True)
class ClientKey:
    """Store key for one (endpoint, identifier) pair."""
    endpoint: str
    identifier: str

    def __str__(self) -> str:
        return f"{self.endpoint}:{self.identifier}"

    @classmethod
    def parse(cls, raw: str) -> "ClientKey":
        # Identifiers may contain ':' (IPv6, user:<id>), endpoints never do.
        endpoint, _, identifier = raw.partition(":")
        return cls(endpoint=endpoint, identifier=identifier)


@dataclass
class WindowDecision:
    """Outcome of evaluating a sliding window."""
    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    current_requests: int


@dataclass(frozen=True)
class ReleaseToken:
    """Identifies the exact timestamp recorded for an admitted request."""
    key: str
    timestamp: int
    skip_successful_requests: bool


@dataclass
class Allowed:
    """The request may proceed."""
    limit: int
    remaining: int
    reset_time: int
    window_ms: int
    release_token: Optional[ReleaseToken] = None
    fail_open: bool = False

    allowed = True

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": ms_to_iso(self.reset_time),
            "X-RateLimit-Window": str(self.window_ms),
        }


@dataclass
class Rejected:
    """The request must stop and surface HTTP 429 to the caller."""
    message: str
    retry_after_seconds: int
    limit: int
    reset_time: int
    window_ms: int
    remaining: int = 0

    allowed = False

    @classmethod
    def from_decision(
        cls,
        decision: WindowDecision,
        policy: RateLimitPolicy,
        now: int,
    ) -> "Rejected":
        return cls(
            message=policy.message,
            retry_after_seconds=max(1, math.ceil((decision.reset_time - now) / 1000)),
            limit=decision.limit,
            reset_time=decision.reset_time,
            window_ms=policy.window_ms,
        )

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": ms_to_iso(self.reset_time),
            "X-RateLimit-Window": str(self.window_ms),
            "Retry-After": str(self.retry_after_seconds),
        }

    def to_response(self) -> Dict[str, Union[str, int]]:
        """Convert to the 429 JSON body."""
        return {
            "error": self.message,
            "retryAfter": self.retry_after_seconds,
            "remaining": self.remaining,
            "resetTime": ms_to_iso(self.reset_time),
        }


AdmissionResult = Union[Allowed, Rejected]


@dataclass
class RateLimitStatus:
    """Snapshot of one client's standing against an endpoint policy."""
    endpoint: str
    client_id: str
    allowed: bool
    remaining: int
    reset_time: str
    window_ms: int
    max_requests: int
    current_requests: int


@dataclass
class RateLimitStats:
    """Aggregate statistics over the whole store."""
    total_clients: int = 0
    total_requests: int = 0
    store_size: int = 0
    endpoint_stats: Dict[str, Dict[str, int]] = field(default_factory=dict)
