"""
Cache Manager
Redis-backed caching and rate limiting; every operation degrades to a no-op
when Redis is not connected.
"""
import json
from typing import Any, Optional, Dict
from . import core
import logging

logger = logging.getLogger(__name__)

class CacheManager:
    """Thin JSON cache over the shared Redis client"""

    def __init__(self):
        self.default_ttl = 3600  # 1 hour default TTL

    def _make_key(self, key: str, prefix: str = "") -> str:
        if prefix:
            return f"{prefix}:{key}"
        return key

    async def set(self, key: str, value: Any, ttl: int = None, prefix: str = "") -> bool:
        """Set cache value with TTL"""
        if not core.REDIS:
            return False

        cache_key = self._make_key(key, prefix)
        ttl = ttl or self.default_ttl

        try:
            if isinstance(value, (dict, list)):
                value = json.dumps(value, default=str)
            await core.REDIS.setex(cache_key, ttl, value)
            return True
        except Exception as e:
            logger.error(f"Cache set failed for key {cache_key}: {str(e)}")
            return False

    async def get(self, key: str, prefix: str = "") -> Optional[Any]:
        if not core.REDIS:
            return None

        cache_key = self._make_key(key, prefix)

        try:
            value = await core.REDIS.get(cache_key)
            if value is None:
                return None
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value.decode() if isinstance(value, bytes) else value
        except Exception as e:
            logger.error(f"Cache get failed for key {cache_key}: {str(e)}")
            return None

    async def delete(self, key: str, prefix: str = "") -> bool:
        if not core.REDIS:
            return False

        cache_key = self._make_key(key, prefix)

        try:
            result = await core.REDIS.delete(cache_key)
            return result > 0
        except Exception as e:
            logger.error(f"Cache delete failed for key {cache_key}: {str(e)}")
            return False

    async def increment(self, key: str, amount: int = 1, prefix: str = "") -> Optional[int]:
        """Increment cache value atomically"""
        if not core.REDIS:
            return None

        cache_key = self._make_key(key, prefix)

        try:
            return await core.REDIS.incrby(cache_key, amount)
        except Exception as e:
            logger.error(f"Cache increment failed for key {cache_key}: {str(e)}")
            return None

# Global cache manager instance
cache = CacheManager()

# Media status cache; only terminal states are cached since they never change
async def cache_media_status(file_id: str, media_data: Dict, ttl: int = 300):
    return await cache.set(file_id, media_data, ttl, "media")

async def get_cached_media_status(file_id: str) -> Optional[Dict]:
    return await cache.get(file_id, "media")

async def invalidate_media_status(file_id: str):
    await cache.delete(file_id, "media")

# Rate limiting functions
async def check_rate_limit(user_id: int, action: str, limit: int = 100, window: int = 3600) -> bool:
    """Check if user is within rate limit; always allows when Redis is down"""
    key = f"rate_limit:{user_id}:{action}"

    current = await cache.get(key, "rate")
    if current is None:
        await cache.set(key, 1, window, "rate")
        return True

    if int(current) >= limit:
        return False

    await cache.increment(key, 1, "rate")
    return True
