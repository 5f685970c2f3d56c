"""Session cache projection stored in Redis.

Each session is a JSON string under registry:session:<token> with an EX
TTL matching the session's remaining lifetime at write time.
"""
from datetime import datetime
from typing import Optional

import redis.asyncio as redis

from registry.constants import SESSION_CACHE_PREFIX
from registry.schemas.session import SessionIdentity
from registry.stores.interfaces import SessionCache
from registry.utils.logger import logger


def _session_key(token: str) -> str:
    """Generate Redis key for a cached session."""
    return f"{SESSION_CACHE_PREFIX}{token}"


class RedisSessionCache(SessionCache):
    """SessionCache backed by a shared async Redis client."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str, timeout_seconds: float) -> "RedisSessionCache":
        """Build a cache with socket timeouts so a stalled Redis cannot hang a request."""
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
            health_check_interval=30,
        )
        return cls(client)

    async def get(self, token: str) -> Optional[SessionIdentity]:
        data = await self._client.get(_session_key(token))
        if not data:
            return None
        return SessionIdentity.model_validate_json(data)

    async def set(self, token: str, identity: SessionIdentity, ttl_seconds: int) -> None:
        await self._client.set(_session_key(token), identity.model_dump_json(), ex=ttl_seconds)

    async def extend(self, token: str, expires_at: datetime, ttl_seconds: int) -> bool:
        key = _session_key(token)
        data = await self._client.get(key)
        if not data:
            return False

        identity = SessionIdentity.model_validate_json(data)
        identity = identity.model_copy(update={"expires_at": expires_at})
        # XX: never resurrect an entry deleted between the read and the write
        result = await self._client.set(key, identity.model_dump_json(), ex=ttl_seconds, xx=True)
        return bool(result)

    async def delete(self, token: str) -> None:
        await self._client.delete(_session_key(token))

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis session cache closed")
