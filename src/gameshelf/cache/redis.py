"""Redis connection — shared pool for rate limiting.

Learn: One pool per process, opened in the app lifespan. Everything that
touches Redis goes through get_redis(), which raises when the pool was
never opened (tests, or Redis down at startup) so callers can skip
Redis-backed behaviour instead of crashing.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from gameshelf.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection before publishing the pool
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


async def ping_redis() -> bool:
    if _redis is None:
        return False
    try:
        return bool(await _redis.ping())
    except RedisError:
        return False
