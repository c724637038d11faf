from functools import lru_cache

import redis.asyncio as redis

from app.config import settings


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:  # type: ignore[type-arg]
    """
    Shared async Redis client for the revocation store.

    redis.asyncio clients hold a connection pool, so one client per process
    is reused across requests rather than opened and closed per call.
    """
    return redis.from_url(
        str(settings.REDIS_URL),
        encoding="utf-8",
        decode_responses=True,
    )


async def close_redis_client() -> None:
    """Close the shared client (call on shutdown)."""
    if get_redis_client.cache_info().currsize:
        await get_redis_client().aclose()
        get_redis_client.cache_clear()
