"""
Redis client wrapper for the catalog service.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from shared.logging import get_logger
from shared.errors import CacheError


class RedisCache:
    """Thin get / set-with-expiry wrapper; errors surface as CacheError."""

    def __init__(self, redis_url: str, password: Optional[str] = None, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.password = password
        self.socket_timeout = socket_timeout
        self.logger = get_logger("catalog.cache.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Start the Redis client.

        The service still answers from PostgreSQL if Redis is down, so a
        failed ping is logged rather than raised.
        """
        self.redis = redis.from_url(
            self.redis_url,
            password=self.password,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=self.socket_timeout,
            socket_timeout=self.socket_timeout,
            health_check_interval=30
        )

        try:
            await self.redis.ping()
            self.logger.info("Redis cache started")
        except RedisError as e:
            self.logger.error("Redis unreachable at startup", error=str(e))

    async def stop(self):
        """Stop the Redis client."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheError("Redis client is not started")
        return self.redis

    async def get(self, key: str) -> Optional[str]:
        """Raw cached value, or None when the key is absent."""
        try:
            value = await self._client().get(key)
        except RedisError as e:
            raise CacheError("Cache read failed", {"key": key, "error": str(e)}) from e

        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ``ttl_seconds``."""
        try:
            await self._client().set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheError("Cache write failed", {"key": key, "error": str(e)}) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except (RedisError, CacheError):
            return False
