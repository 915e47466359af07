"""Client identification for rate limiting."""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from fastapi import Request

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1"})

# Checked in order after the direct socket address.
PROXY_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",  # Cloudflare
    "x-forwarded",
    "forwarded-for",
    "forwarded",
)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RequestMeta:
    """Address sources of an incoming request.

    Header names are normalized to lower case.
    """
    source_ip: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = {str(k).lower(): v for k, v in dict(self.headers).items()}

    @classmethod
    def from_request(cls, request: Request) -> "RequestMeta":
        return cls(
            source_ip=request.client.host if request.client else None,
            headers=dict(request.headers),
        )


def _candidates(meta: RequestMeta):
    yield meta.source_ip
    for name in PROXY_HEADERS:
        value = meta.headers.get(name)
        if name == "x-forwarded-for" and isinstance(value, str):
            value = value.split(",")[0].strip()
        yield value


def identify(meta: RequestMeta, user_id: Optional[str] = None) -> str:
    """Derive a stable identifier for the caller.

    Authenticated callers are identified as ``user:<id>``. Otherwise the first
    non-empty, non-loopback address wins; ``"unknown"`` when none qualifies.
    """
    if user_id:
        return f"user:{user_id}"

    for candidate in _candidates(meta):
        if isinstance(candidate, str) and candidate and candidate not in LOOPBACK_ADDRESSES:
            return candidate
    return UNKNOWN_CLIENT
