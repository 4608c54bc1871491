"""Tests for the Redis product cache."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.exceptions import CacheMiss, CacheWriteFailed
from app.services.product_cache import ProductCache
from tests.conftest import make_product


class TestGetAll:

    @pytest.mark.asyncio
    async def test_missing_index_is_a_miss(self, cache: ProductCache):
        with pytest.raises(CacheMiss):
            await cache.get_all()

    @pytest.mark.asyncio
    async def test_index_with_only_expired_keys_is_a_miss(self, cache: ProductCache, redis_client):
        await redis_client.sadd(cache.index_key, "a", "b")
        with pytest.raises(CacheMiss):
            await cache.get_all()

    @pytest.mark.asyncio
    async def test_missing_and_corrupt_entries_are_skipped(self, cache: ProductCache, redis_client):
        good = make_product("Good")
        await redis_client.set(cache.product_key(good.id), good.model_dump_json())
        await redis_client.set(cache.product_key("corrupt"), "{not json")
        await redis_client.sadd(cache.index_key, good.id, "corrupt", "expired")

        products = await cache.get_all()

        assert [p.id for p in products] == [good.id]

    @pytest.mark.asyncio
    async def test_only_corrupt_entries_is_a_miss(self, cache: ProductCache, redis_client):
        await redis_client.set(cache.product_key("corrupt"), '{"id": "corrupt"}')
        await redis_client.sadd(cache.index_key, "corrupt")
        with pytest.raises(CacheMiss):
            await cache.get_all()

    @pytest.mark.asyncio
    async def test_redis_failure_is_a_miss(self):
        redis_client = AsyncMock()
        redis_client.smembers.side_effect = RedisConnectionError("connection refused")
        with pytest.raises(CacheMiss):
            await ProductCache(redis_client).get_all()


class TestReplaceAll:

    @pytest.mark.asyncio
    async def test_round_trip_returns_same_ids(self, cache: ProductCache):
        products = [make_product("Bolt"), make_product("Anvil", qty=0), make_product("Chain")]

        await cache.replace_all(products)
        cached = await cache.get_all()

        assert {p.id for p in cached} == {p.id for p in products}
        assert [p.name for p in cached] == ["Anvil", "Bolt", "Chain"]
        assert cached[0] == products[1]

    @pytest.mark.asyncio
    async def test_entries_expire(self, cache: ProductCache, redis_client):
        product = make_product("Bolt")
        await cache.replace_all([product])

        ttl = await redis_client.ttl(cache.product_key(product.id))
        assert 0 < ttl <= 300
        assert await redis_client.ttl(cache.index_key) == -1

    @pytest.mark.asyncio
    async def test_index_is_replaced(self, cache: ProductCache, redis_client):
        await redis_client.sadd(cache.index_key, "stale-id")
        product = make_product("Bolt")

        await cache.replace_all([product])

        assert await redis_client.smembers(cache.index_key) == {product.id}

    @pytest.mark.asyncio
    async def test_empty_list_clears_index(self, cache: ProductCache, redis_client):
        await redis_client.sadd(cache.index_key, "stale-id")

        await cache.replace_all([])

        assert not await redis_client.exists(cache.index_key)


class TestPut:

    @pytest.mark.asyncio
    async def test_entry_has_no_expiry(self, cache: ProductCache, redis_client):
        product = make_product("Bolt")
        await cache.replace_all([product])

        await cache.put(product)

        assert await redis_client.ttl(cache.product_key(product.id)) == -1
        assert await redis_client.sismember(cache.index_key, product.id)

    @pytest.mark.asyncio
    async def test_failed_set_leaves_index_untouched(self):
        redis_client = AsyncMock()
        redis_client.set.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheWriteFailed):
            await ProductCache(redis_client).put(make_product("Bolt"))
        redis_client.sadd.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_index_add_is_reported(self):
        redis_client = AsyncMock()
        redis_client.sadd.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheWriteFailed):
            await ProductCache(redis_client).put(make_product("Bolt"))
