"""
Redis Cache Service.
Backs the per-session delivery location (see delivery_selection).
"""
import json
from typing import Optional, Any
from redis.asyncio import Redis

from storefront.app.core.settings import get_settings


class CacheService:
    """Service for caching operations using Redis."""

    _redis: Optional[Redis] = None

    TTL_DEFAULT = 300          # 5 minutes

    @classmethod
    async def get_redis(cls) -> Redis:
        """Get or create Redis connection."""
        if cls._redis is None:
            cls._redis = Redis.from_url(get_settings().redis_url, decode_responses=True)
        return cls._redis

    @classmethod
    async def close(cls):
        """Close Redis connection."""
        if cls._redis:
            await cls._redis.aclose()
            cls._redis = None

    def __init__(self, redis: Redis):
        self.redis = redis

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache. Undecodable values read as missing."""
        data = await self.redis.get(key)
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return None

    async def set(self, key: str, value: Any, ttl: int = TTL_DEFAULT):
        """Set value in cache with TTL."""
        await self.redis.set(key, json.dumps(value, ensure_ascii=False), ex=ttl)

    async def delete(self, key: str):
        """Delete value from cache."""
        await self.redis.delete(key)
