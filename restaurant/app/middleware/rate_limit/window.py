"""Sliding-window request counting.

Counts the requests recorded for a key inside the trailing window that ends
"now", as opposed to fixed buckets aligned to clock boundaries. A key is
throttled while ``max_requests`` timestamps are inside the window and becomes
available again as soon as the oldest one ages out; that state is derived from
the stored timestamps on every check and never stored itself.
"""

import asyncio
from typing import Callable, List

from restaurant.app.core.logging import get_logger
from restaurant.app.middleware.rate_limit.models import (
    ClientKey,
    RateLimitPolicy,
    WindowDecision,
)
from restaurant.app.middleware.rate_limit.store import RateLimitStore

logger = get_logger(__name__)


def prune(timestamps: List[int], window_ms: int, now: int) -> List[int]:
    """Keep only the timestamps still inside the trailing window."""
    window_start = now - window_ms
    return [ts for ts in timestamps if ts > window_start]


def validate_rate_limit(
    timestamps: List[int],
    max_requests: int,
    window_ms: int,
    now: int,
) -> WindowDecision:
    """Evaluate a request log against a limit.

    Args:
        timestamps: Recorded request times in epoch milliseconds
        max_requests: Requests allowed per window
        window_ms: Window length in milliseconds
        now: Current time in epoch milliseconds

    Returns:
        WindowDecision for a request arriving at ``now``. ``remaining`` is the
        quota left before that request is recorded.
    """
    recent = prune(timestamps, window_ms, now)
    count = len(recent)
    return WindowDecision(
        allowed=count < max_requests,
        limit=max_requests,
        remaining=max(0, max_requests - count),
        reset_time=min(recent) + window_ms if recent else now + window_ms,
        current_requests=count,
    )


class WindowCounter:
    """Per-key sliding-window counter over a RateLimitStore.

    Every read-modify-write of the store runs under one lock, so two
    concurrent hits on a key can never both take its last slot.
    """

    def __init__(self, store: RateLimitStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def _load(self, key: str, window_ms: int, now: int) -> List[int]:
        timestamps = await self.store.get(key)
        valid = prune(timestamps, window_ms, now)
        if len(valid) != len(timestamps):
            # Persist the pruned list so idle keys do not keep growing.
            await self.store.put(key, valid, ttl_ms=window_ms)
        return valid

    async def check(self, key: str, policy: RateLimitPolicy, now: int) -> WindowDecision:
        """Evaluate key against policy without recording a request."""
        async with self._lock:
            valid = await self._load(key, policy.window_ms, now)
            return validate_rate_limit(valid, policy.max_requests, policy.window_ms, now)

    async def hit(self, key: str, policy: RateLimitPolicy, now: int) -> WindowDecision:
        """Evaluate key and record ``now`` when the request is admitted.

        On admission ``remaining`` and ``current_requests`` already account
        for the recorded request.
        """
        async with self._lock:
            valid = await self._load(key, policy.window_ms, now)
            decision = validate_rate_limit(valid, policy.max_requests, policy.window_ms, now)
            if decision.allowed:
                await self.store.append(key, now, ttl_ms=policy.window_ms)
                decision.remaining = max(0, decision.remaining - 1)
                decision.current_requests += 1
            return decision

    async def release(self, key: str, timestamp: int) -> bool:
        """Forget one recorded timestamp of key."""
        async with self._lock:
            return await self.store.remove(key, timestamp)

    async def sweep(self, window_for: Callable[[str], int], now: int) -> int:
        """Prune every key by its own window and delete keys left empty.

        Args:
            window_for: Maps an endpoint name to its window length
            now: Current time in epoch milliseconds

        Returns:
            Number of keys deleted
        """
        removed = 0
        async with self._lock:
            for key, timestamps in (await self.store.items()).items():
                window_ms = window_for(ClientKey.parse(key).endpoint)
                valid = prune(timestamps, window_ms, now)
                if not valid:
                    await self.store.delete(key)
                    removed += 1
                elif len(valid) != len(timestamps):
                    await self.store.put(key, valid, ttl_ms=window_ms)
        return removed
