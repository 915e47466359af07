"""Tests for the rate limit stores."""

import pytest
import redis
from unittest.mock import AsyncMock, Mock

from restaurant.app.exceptions import StoreUnavailableError
from restaurant.app.middleware.rate_limit import InMemoryStore, RedisStore


class TestInMemoryStore:
    """Tests for the process-local store."""

    @pytest.mark.asyncio
    async def test_get_missing_key_is_empty(self):
        assert await InMemoryStore().get("reservations:a") == []

    @pytest.mark.asyncio
    async def test_get_returns_a_copy(self):
        store = InMemoryStore()
        await store.append("k", 1)
        timestamps = await store.get("k")
        timestamps.append(99)
        assert await store.get("k") == [1]

    @pytest.mark.asyncio
    async def test_put_empty_deletes(self):
        store = InMemoryStore()
        await store.put("k", [1, 2])
        await store.put("k", [])
        assert await store.size() == 0

    @pytest.mark.asyncio
    async def test_remove_single_occurrence(self):
        store = InMemoryStore()
        await store.put("k", [5, 5, 6])
        assert await store.remove("k", 5) is True
        assert await store.get("k") == [5, 6]

    @pytest.mark.asyncio
    async def test_remove_missing(self):
        store = InMemoryStore()
        await store.put("k", [5])
        assert await store.remove("k", 7) is False
        assert await store.remove("other", 5) is False

    @pytest.mark.asyncio
    async def test_remove_last_drops_key(self):
        store = InMemoryStore()
        await store.append("k", 5)
        await store.remove("k", 5)
        assert await store.items() == {}

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryStore()
        await store.append("a", 1)
        await store.append("b", 2)
        await store.clear()
        assert await store.size() == 0


def make_redis():
    pipe = Mock()
    pipe.execute = AsyncMock(return_value=[])
    client = AsyncMock()
    client.pipeline = Mock(return_value=pipe)
    return client, pipe


class TestRedisStore:
    """Tests for the Redis sorted-set store."""

    @pytest.mark.asyncio
    async def test_get_returns_scores(self):
        client, _ = make_redis()
        client.zrange.return_value = [(b"100-aa", 100.0), (b"200-bb", 200.0)]
        store = RedisStore(redis_client=client, key_prefix="rl")

        assert await store.get("reservations:a") == [100, 200]
        client.zrange.assert_awaited_once_with("rl:reservations:a", 0, -1, withscores=True)

    @pytest.mark.asyncio
    async def test_append_sets_ttl(self):
        client, pipe = make_redis()
        store = RedisStore(redis_client=client, key_prefix="rl")

        await store.append("reservations:a", 123, ttl_ms=900_000)

        member_scores = pipe.zadd.call_args[0][1]
        assert list(member_scores.values()) == [123]
        assert list(member_scores)[0].startswith("123-")
        pipe.pexpire.assert_called_once_with("rl:reservations:a", 900_000)
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_put_replaces_set(self):
        client, pipe = make_redis()
        store = RedisStore(redis_client=client, key_prefix="rl")

        await store.put("k", [1, 2], ttl_ms=1000)

        pipe.delete.assert_called_once_with("rl:k")
        assert sorted(pipe.zadd.call_args[0][1].values()) == [1, 2]

    @pytest.mark.asyncio
    async def test_put_empty_only_deletes(self):
        client, pipe = make_redis()
        store = RedisStore(redis_client=client, key_prefix="rl")

        await store.put("k", [])

        pipe.delete.assert_called_once_with("rl:k")
        pipe.zadd.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_one_member(self):
        client, _ = make_redis()
        client.zrangebyscore.return_value = [b"5-aa"]
        store = RedisStore(redis_client=client, key_prefix="rl")

        assert await store.remove("k", 5) is True
        client.zrem.assert_awaited_once_with("rl:k", b"5-aa")

    @pytest.mark.asyncio
    async def test_remove_missing(self):
        client, _ = make_redis()
        client.zrangebyscore.return_value = []
        store = RedisStore(redis_client=client, key_prefix="rl")

        assert await store.remove("k", 5) is False
        client.zrem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_items_strips_prefix(self):
        client, _ = make_redis()

        async def scan(match=None):
            for key in (b"rl:reservations:a", b"rl:catering:b"):
                yield key

        client.scan_iter = Mock(side_effect=scan)
        client.zrange.return_value = [(b"1-aa", 1.0)]
        store = RedisStore(redis_client=client, key_prefix="rl")

        assert await store.items() == {"reservations:a": [1], "catering:b": [1]}

    @pytest.mark.asyncio
    async def test_redis_errors_become_store_unavailable(self):
        client, _ = make_redis()
        client.zrange.side_effect = redis.ConnectionError("down")
        store = RedisStore(redis_client=client)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.get("k")
        assert exc_info.value.operation == "get"

    @pytest.mark.asyncio
    async def test_close(self):
        client, _ = make_redis()
        store = RedisStore(redis_client=client)

        await store.close()

        client.aclose.assert_awaited_once()
