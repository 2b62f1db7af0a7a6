"""Tests for the result cache — in-memory backend and Redis backend with a mocked client."""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from result_checker.config import Settings
from result_checker.errors import ServiceError
from result_checker.services.cache import (
    MemoryResultCache,
    ResultCache,
    build_cache,
    result_key,
)


class TestCacheKey:
    def test_prefix(self):
        assert result_key("S1") == "result:S1"

    def test_id_used_verbatim(self):
        assert result_key("2024-CSE-001") == "result:2024-CSE-001"


class TestMemoryCache:
    @pytest.mark.asyncio
    async def test_set_and_get(self, cache):
        data = {"id": "S1", "subjects": {"math": 90}}
        await cache.set("S1", data)
        assert await cache.get("S1") == data

    @pytest.mark.asyncio
    async def test_get_miss(self, cache):
        assert await cache.get("nobody") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, cache):
        await cache.set("S1", {"v": 1})
        await cache.set("S1", {"v": 2})
        assert await cache.get("S1") == {"v": 2}

    @pytest.mark.asyncio
    async def test_served_within_ttl(self, cache, clock):
        await cache.set("S1", {"id": "S1"})
        clock.advance(cache.ttl - 1)
        assert await cache.get("S1") == {"id": "S1"}

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self, cache, clock):
        await cache.set("S1", {"id": "S1"})
        clock.advance(cache.ttl + 1)
        assert await cache.get("S1") is None

    @pytest.mark.asyncio
    async def test_returns_copy(self, cache):
        await cache.set("S1", {"subjects": {"math": 90}})
        first = await cache.get("S1")
        first["subjects"]["math"] = 0
        assert (await cache.get("S1"))["subjects"]["math"] == 90


class TestRedisCache:
    @pytest.fixture
    def redis_client(self):
        return AsyncMock()

    @pytest.fixture
    def redis_cache(self, redis_client):
        return ResultCache("redis://localhost:6379", ttl=600, client=redis_client)

    @pytest.mark.asyncio
    async def test_set_uses_setex_with_ttl(self, redis_cache, redis_client):
        await redis_cache.set("S1", {"id": "S1", "subjects": {"math": 90}})
        key, ttl, payload = redis_client.setex.await_args.args
        assert key == "result:S1"
        assert ttl == 600
        assert json.loads(payload) == {"id": "S1", "subjects": {"math": 90}}

    @pytest.mark.asyncio
    async def test_get_hit_decodes_json(self, redis_cache, redis_client):
        redis_client.get.return_value = '{"id": "S1", "subjects": {"math": 90}}'
        assert await redis_cache.get("S1") == {"id": "S1", "subjects": {"math": 90}}
        redis_client.get.assert_awaited_once_with("result:S1")

    @pytest.mark.asyncio
    async def test_get_miss(self, redis_cache, redis_client):
        redis_client.get.return_value = None
        assert await redis_cache.get("S1") is None

    @pytest.mark.asyncio
    async def test_get_error_raises_service_error(self, redis_cache, redis_client):
        redis_client.get.side_effect = RedisConnectionError("refused")
        with pytest.raises(ServiceError):
            await redis_cache.get("S1")

    @pytest.mark.asyncio
    async def test_set_error_raises_service_error(self, redis_cache, redis_client):
        redis_client.setex.side_effect = RedisConnectionError("refused")
        with pytest.raises(ServiceError):
            await redis_cache.set("S1", {"id": "S1"})

    @pytest.mark.asyncio
    async def test_ping_error_raises_service_error(self, redis_cache, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("refused")
        with pytest.raises(ServiceError):
            await redis_cache.ping()

    @pytest.mark.asyncio
    async def test_not_connected(self):
        with pytest.raises(ServiceError):
            await ResultCache("redis://localhost:6379", ttl=600).get("S1")

    @pytest.mark.asyncio
    async def test_close_releases_client(self, redis_cache, redis_client):
        await redis_cache.close()
        redis_client.aclose.assert_awaited_once()
        with pytest.raises(ServiceError):
            await redis_cache.get("S1")


class TestBuildCache:
    def test_redis_by_default(self):
        cache = build_cache(Settings(_env_file=None))
        assert isinstance(cache, ResultCache)
        assert cache.ttl == 600

    def test_memory_backend(self):
        cache = build_cache(Settings(cache_backend="memory", cache_ttl=30, _env_file=None))
        assert isinstance(cache, MemoryResultCache)
        assert cache.ttl == 30
