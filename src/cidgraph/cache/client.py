"""Async Redis client wrapper."""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from cidgraph.core.exceptions import CacheError


class AsyncRedisClient:
    """Async Redis client wrapper with JSON serialization."""

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._pool: aioredis.ConnectionPool | None = None
        self._redis: aioredis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._pool = aioredis.ConnectionPool.from_url(
            self._redis_url,
            max_connections=20,
            decode_responses=True,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis:
            await self._redis.aclose()
        if self._pool:
            await self._pool.disconnect()
        self._redis = None
        self._pool = None

    async def get(self, key: str) -> Any | None:
        """Get a JSON value from cache."""
        if not self._redis:
            return None
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            raise CacheError(f"Redis GET failed: {e}", {"key": key}) from e
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int = 3600,
    ) -> None:
        """Set a JSON value in cache with TTL."""
        if not self._redis:
            return
        serialized = json.dumps(value, default=str)
        try:
            await self._redis.set(key, serialized, ex=ttl)
        except RedisError as e:
            raise CacheError(f"Redis SET failed: {e}", {"key": key}) from e
