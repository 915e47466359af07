"""Timestamp stores backing the sliding-window rate limiter.

A store maps a client key (``"{endpoint}:{identifier}"``) to the
chronologically ordered list of request timestamps (epoch milliseconds) that
were admitted for it. Stores do no locking of their own; the window counter
serializes read-modify-write sequences.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import redis
import redis.asyncio as aioredis

from restaurant.app.core.logging import get_logger
from restaurant.app.exceptions import StoreUnavailableError

logger = get_logger(__name__)


class RateLimitStore(ABC):
    """Abstract base class for rate limit stores.

    Backend failures are raised as StoreUnavailableError so callers can apply
    their fail-open policy in one place.
    """

    @abstractmethod
    async def get(self, key: str) -> List[int]:
        """Return the timestamps recorded for key (empty list if absent)."""

    @abstractmethod
    async def put(self, key: str, timestamps: List[int], ttl_ms: Optional[int] = None) -> None:
        """Replace the timestamps for key; an empty list deletes the key."""

    @abstractmethod
    async def append(self, key: str, timestamp: int, ttl_ms: Optional[int] = None) -> None:
        """Record one more timestamp for key."""

    @abstractmethod
    async def remove(self, key: str, timestamp: int) -> bool:
        """Remove one occurrence of timestamp; drop the key once empty."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Forget everything recorded for key."""

    @abstractmethod
    async def items(self) -> Dict[str, List[int]]:
        """Snapshot of every key and its timestamps."""

    @abstractmethod
    async def size(self) -> int:
        """Number of keys currently held."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop all keys."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryStore(RateLimitStore):
    """Process-local store. Suitable for single-instance deployments."""

    def __init__(self) -> None:
        self._data: Dict[str, List[int]] = {}

    async def get(self, key: str) -> List[int]:
        return list(self._data.get(key, ()))

    async def put(self, key: str, timestamps: List[int], ttl_ms: Optional[int] = None) -> None:
        if timestamps:
            self._data[key] = list(timestamps)
        else:
            self._data.pop(key, None)

    async def append(self, key: str, timestamp: int, ttl_ms: Optional[int] = None) -> None:
        self._data.setdefault(key, []).append(timestamp)

    async def remove(self, key: str, timestamp: int) -> bool:
        timestamps = self._data.get(key)
        if not timestamps or timestamp not in timestamps:
            return False
        timestamps.remove(timestamp)
        if not timestamps:
            del self._data[key]
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def items(self) -> Dict[str, List[int]]:
        return {key: list(timestamps) for key, timestamps in self._data.items()}

    async def size(self) -> int:
        return len(self._data)

    async def clear(self) -> None:
        self._data.clear()


class RedisStore(RateLimitStore):
    """Redis-backed store using one sorted set per key.

    Members are unique tokens scored by timestamp, so several requests in the
    same millisecond are kept apart. Keys carry a TTL of one window and expire
    on their own.
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "ratelimit",
    ):
        self._redis = redis_client
        self._redis_url = redis_url
        self._prefix = key_prefix

    def _client(self) -> Any:
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url)
        return self._redis

    def _k(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    @staticmethod
    def _member(timestamp: int) -> str:
        return f"{timestamp}-{uuid.uuid4().hex[:8]}"

    def _strip(self, raw: Any) -> str:
        name = raw.decode() if isinstance(raw, bytes) else str(raw)
        return name[len(self._prefix) + 1:]

    async def get(self, key: str) -> List[int]:
        try:
            entries = await self._client().zrange(self._k(key), 0, -1, withscores=True)
        except redis.RedisError as e:
            raise StoreUnavailableError("get", e) from e
        return [int(score) for _, score in entries]

    async def put(self, key: str, timestamps: List[int], ttl_ms: Optional[int] = None) -> None:
        try:
            pipe = self._client().pipeline(transaction=True)
            pipe.delete(self._k(key))
            if timestamps:
                pipe.zadd(self._k(key), {self._member(ts): ts for ts in timestamps})
                if ttl_ms:
                    pipe.pexpire(self._k(key), ttl_ms)
            await pipe.execute()
        except redis.RedisError as e:
            raise StoreUnavailableError("put", e) from e

    async def append(self, key: str, timestamp: int, ttl_ms: Optional[int] = None) -> None:
        try:
            pipe = self._client().pipeline(transaction=True)
            pipe.zadd(self._k(key), {self._member(timestamp): timestamp})
            if ttl_ms:
                pipe.pexpire(self._k(key), ttl_ms)
            await pipe.execute()
        except redis.RedisError as e:
            raise StoreUnavailableError("append", e) from e

    async def remove(self, key: str, timestamp: int) -> bool:
        try:
            client = self._client()
            members = await client.zrangebyscore(self._k(key), timestamp, timestamp, start=0, num=1)
            if not members:
                return False
            await client.zrem(self._k(key), members[0])
            return True
        except redis.RedisError as e:
            raise StoreUnavailableError("remove", e) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client().delete(self._k(key))
        except redis.RedisError as e:
            raise StoreUnavailableError("delete", e) from e

    async def _keys(self) -> List[str]:
        client = self._client()
        return [self._strip(raw) async for raw in client.scan_iter(match=f"{self._prefix}:*")]

    async def items(self) -> Dict[str, List[int]]:
        try:
            keys = await self._keys()
        except redis.RedisError as e:
            raise StoreUnavailableError("items", e) from e
        return {key: await self.get(key) for key in keys}

    async def size(self) -> int:
        try:
            return len(await self._keys())
        except redis.RedisError as e:
            raise StoreUnavailableError("size", e) from e

    async def clear(self) -> None:
        try:
            keys = await self._keys()
            if keys:
                await self._client().delete(*[self._k(key) for key in keys])
        except redis.RedisError as e:
            raise StoreUnavailableError("clear", e) from e

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def create_store(use_redis: bool, redis_url: str, key_prefix: str = "ratelimit") -> RateLimitStore:
    """Select the store backend from configuration."""
    if use_redis:
        logger.info("Using Redis rate limit store")
        return RedisStore(redis_url=redis_url, key_prefix=key_prefix)
    logger.debug("Using in-memory rate limit store")
    return InMemoryStore()
