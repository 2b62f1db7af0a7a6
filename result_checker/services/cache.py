"""Result cache — Redis backend, plus an in-memory TTLCache backend.

Entries are JSON strings stored under `result:<student id>` with a single
global TTL (CACHE_TTL). There is no per-entry TTL and no invalidation;
results are immutable once ingested.

Redis failures surface as ServiceError. The in-memory backend is meant for
local runs without Redis and for tests (its clock is injectable).
"""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis
from cachetools import TTLCache
from redis.exceptions import RedisError

from result_checker.errors import ServiceError

logger = logging.getLogger(__name__)

KEY_PREFIX = "result:"


def result_key(student_id: str) -> str:
    """Cache key for a student's result."""
    return f"{KEY_PREFIX}{student_id}"


def dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False)


class ResultCache:
    """Async Redis cache for result documents."""

    def __init__(self, url: str, ttl: int, client: aioredis.Redis | None = None):
        self._url = url
        self.ttl = ttl
        self._redis = client

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = aioredis.from_url(self._url, decode_responses=True)
        await self.ping()
        logger.info("Redis connected")

    async def close(self) -> None:
        if self._redis is not None:
            client, self._redis = self._redis, None
            try:
                await client.aclose()
            except RedisError as e:
                raise ServiceError(f"Redis close failed: {e}") from e
            logger.info("Redis connection closed")

    async def ping(self) -> None:
        if self._redis is None:
            raise ServiceError("Redis client is not connected")
        try:
            await self._redis.ping()
        except RedisError as e:
            raise ServiceError(f"Redis ping failed: {e}") from e

    async def get(self, student_id: str) -> dict[str, Any] | None:
        """Read a cached result. Returns None on miss."""
        if self._redis is None:
            raise ServiceError("Redis client is not connected")
        try:
            data = await self._redis.get(result_key(student_id))
        except RedisError as e:
            raise ServiceError(f"Redis GET failed: {e}") from e
        return json.loads(data) if data is not None else None

    async def set(self, student_id: str, data: dict[str, Any]) -> None:
        """Write a result with the fixed TTL."""
        if self._redis is None:
            raise ServiceError("Redis client is not connected")
        try:
            await self._redis.setex(result_key(student_id), self.ttl, dumps(data))
        except RedisError as e:
            raise ServiceError(f"Redis SETEX failed: {e}") from e
        logger.info("Cache SET | key=%s | ttl=%ds", result_key(student_id), self.ttl)


class MemoryResultCache:
    """Process-local cache with the same interface as ResultCache."""

    def __init__(self, ttl: int, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    async def connect(self) -> None:
        logger.info("Using in-memory result cache | ttl=%ds", self.ttl)

    async def close(self) -> None:
        self._entries.clear()

    async def ping(self) -> None:
        return None

    async def get(self, student_id: str) -> dict[str, Any] | None:
        data = self._entries.get(result_key(student_id))
        return json.loads(data) if data is not None else None

    async def set(self, student_id: str, data: dict[str, Any]) -> None:
        self._entries[result_key(student_id)] = dumps(data)
        logger.info("Cache SET (memory) | key=%s | ttl=%ds", result_key(student_id), self.ttl)


def build_cache(config) -> ResultCache | MemoryResultCache:
    """Cache backend selected by CACHE_BACKEND."""
    if config.cache_backend == "memory":
        return MemoryResultCache(config.cache_ttl)
    return ResultCache(config.redis_url, config.cache_ttl)
