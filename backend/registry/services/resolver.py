"""Session resolution: bearer token -> session identity.

Cache first, durable store second. A cache failure falls through to the
store; a store failure resolves to None so the caller denies the request.
"""
import asyncio
import math
from datetime import datetime
from typing import Callable, Optional

from registry.schemas.session import SessionIdentity
from registry.stores.interfaces import CredentialStore, SessionCache
from registry.utils.clock import utc_now
from registry.utils.logger import logger


class SessionResolver:
    """Read-mostly lookup of live sessions."""

    def __init__(
        self,
        store: CredentialStore,
        cache: SessionCache,
        store_timeout: float,
        cache_timeout: float,
        repair_cache: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cache = cache
        self.store_timeout = store_timeout
        self.cache_timeout = cache_timeout
        self.repair_cache = repair_cache
        self.clock = clock

    async def resolve(self, token: Optional[str]) -> Optional[SessionIdentity]:
        """
        Resolve a session token.

        Args:
            token: Bearer token from the request

        Returns:
            The session identity, or None if the token is unknown, expired,
            or the durable store could not be read
        """
        if not token:
            return None

        now = self.clock()
        cache_available = True
        try:
            cached = await asyncio.wait_for(self.cache.get(token), self.cache_timeout)
        except Exception as e:
            logger.warning(f"Session cache read failed, falling back to store: {e}", exc_info=True)
            cached = None
            cache_available = False

        if cached is not None and not cached.is_expired(now):
            return cached

        try:
            record = await asyncio.wait_for(self.store.find_session(token), self.store_timeout)
        except Exception as e:
            logger.error(f"Session store read failed, treating session as unresolved: {e}", exc_info=True)
            return None

        if record is None:
            return None

        identity = SessionIdentity.from_record(record)
        if self.repair_cache and cache_available:
            await self._repair(token, identity, now)
        return identity

    async def _repair(self, token: str, identity: SessionIdentity, now: datetime) -> None:
        """Re-populate the cache after a miss, with TTL = remaining lifetime."""
        remaining = math.ceil((identity.expires_at - now).total_seconds())
        if remaining <= 0:
            return
        try:
            await asyncio.wait_for(self.cache.set(token, identity, remaining), self.cache_timeout)
            logger.debug(f"Repaired cache entry for session {identity.session_id}")
        except Exception as e:
            logger.warning(f"Failed to repair cache for session {identity.session_id}: {e}", exc_info=True)
