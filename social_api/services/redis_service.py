# social_api/services/redis_service.py
from typing import Optional
from redis.asyncio import Redis
from social_api.config import settings

class RedisService:
    def __init__(self, client: Optional[Redis] = None):
        self.redis: Redis = client or Redis.from_url(settings.redis_url, decode_responses=True)

    async def set(self, key: str, value: str, expire: int = None):
        """Set a key with optional expiration in seconds"""
        await self.redis.set(name=key, value=value, ex=expire)

    async def setex(self, key: str, ttl: int, value: str):
        """Set a key that expires after ``ttl`` seconds"""
        await self.redis.set(name=key, value=value, ex=ttl)

    async def get(self, key: str):
        """Get the value of a key"""
        return await self.redis.get(key)

    async def delete(self, *keys: str):
        """Delete one or more keys"""
        if keys:
            await self.redis.delete(*keys)

    async def delete_pattern(self, pattern: str):
        """Delete every key matching a glob pattern"""
        keys = [key async for key in self.redis.scan_iter(match=pattern)]
        await self.delete(*keys)

    async def close(self):
        """Close the Redis connection"""
        await self.redis.aclose()

_redis_service: Optional[RedisService] = None

def get_redis_service() -> Optional[RedisService]:
    """Dependency returning the shared cache client, or None when caching is off"""
    global _redis_service
    if not settings.CACHE_ENABLED:
        return None
    if _redis_service is None:
        _redis_service = RedisService()
    return _redis_service

async def close_redis_service() -> None:
    global _redis_service
    if _redis_service is not None:
        await _redis_service.close()
        _redis_service = None
