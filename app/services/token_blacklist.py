"""
Access-token revocation list.

Access tokens are stateless, so logging out cannot "delete" one; instead the
token's jti is recorded here until the token would have expired anyway.

Two backends share the same interface:
- RedisTokenBlacklist: shared across all API processes, entries expire via TTL
- MemoryTokenBlacklist: process-local, for tests and single-process development
"""

import math
from datetime import UTC, datetime
from functools import lru_cache
from typing import Protocol

import redis.asyncio as redis

from app.config import settings
from app.core.logging import get_logger
from app.core.redis import get_redis_client

logger = get_logger(__name__)

KEY_PREFIX = "token_blacklist:"


class TokenBlacklist(Protocol):
    async def revoke(self, jti: str, expires_at: datetime) -> None: ...

    async def is_revoked(self, jti: str) -> bool: ...


def _remaining_seconds(expires_at: datetime) -> int:
    return math.ceil((expires_at - datetime.now(UTC)).total_seconds())


class RedisTokenBlacklist:
    """
    Redis-backed blacklist.

    Key: token_blacklist:{jti}, value: revocation timestamp (ISO 8601),
    TTL: the token's remaining lifetime. Errors propagate so a Redis outage
    is never mistaken for "not revoked".
    """

    def __init__(self, client: redis.Redis | None = None) -> None:  # type: ignore[type-arg]
        self._client = client

    @property
    def client(self) -> redis.Redis:  # type: ignore[type-arg]
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    async def revoke(self, jti: str, expires_at: datetime) -> None:
        ttl = _remaining_seconds(expires_at)
        if ttl <= 0:
            # Already expired; signature verification rejects it on its own
            return
        await self.client.set(f"{KEY_PREFIX}{jti}", datetime.now(UTC).isoformat(), ex=ttl)
        logger.info("access_token_revoked", jti=jti, ttl=ttl)

    async def is_revoked(self, jti: str) -> bool:
        return bool(await self.client.exists(f"{KEY_PREFIX}{jti}"))


class MemoryTokenBlacklist:
    """Process-local blacklist: jti -> expiry. Expired entries are dropped on read."""

    def __init__(self) -> None:
        self._entries: dict[str, datetime] = {}

    async def revoke(self, jti: str, expires_at: datetime) -> None:
        if _remaining_seconds(expires_at) <= 0:
            return
        self._entries[jti] = expires_at

    async def is_revoked(self, jti: str) -> bool:
        expires_at = self._entries.get(jti)
        if expires_at is None:
            return False
        if expires_at <= datetime.now(UTC):
            del self._entries[jti]
            return False
        return True

    def clear(self) -> None:
        self._entries.clear()


@lru_cache(maxsize=1)
def get_token_blacklist() -> TokenBlacklist:
    """FastAPI dependency returning the configured blacklist backend."""
    if settings.TOKEN_BLACKLIST_BACKEND == "memory":
        return MemoryTokenBlacklist()
    return RedisTokenBlacklist()
