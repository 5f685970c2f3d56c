"""Session refresh and revocation."""
import asyncio
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from registry.constants import ErrorReason
from registry.stores.interfaces import CredentialStore, SessionCache
from registry.utils.clock import utc_now
from registry.utils.exceptions import AuthenticationError
from registry.utils.logger import logger


@dataclass
class RefreshedSession:
    """Result of a successful refresh. The token is not rotated."""
    session_token: str
    ttl: int
    expires_at: datetime


class SessionLifecycleManager:
    """Extends and destroys sessions in the store and the cache."""

    def __init__(
        self,
        store: CredentialStore,
        cache: SessionCache,
        session_ttl: int,
        store_timeout: float,
        cache_timeout: float,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cache = cache
        self.session_ttl = session_ttl
        self.store_timeout = store_timeout
        self.cache_timeout = cache_timeout
        self.clock = clock

    async def refresh(self, token: Optional[str]) -> RefreshedSession:
        """
        Push a live session's expiry to now + session TTL.

        Expiry never moves backwards. The cache entry, if present, is
        rewritten with the new expiry on a best-effort basis.

        Raises:
            AuthenticationError: missing_token, session_not_found_or_expired
        """
        if not token:
            raise AuthenticationError(ErrorReason.MISSING_TOKEN)

        now = self.clock()
        expires_at = await asyncio.wait_for(
            self.store.refresh_session(token, now + timedelta(seconds=self.session_ttl)),
            self.store_timeout,
        )
        if expires_at is None:
            raise AuthenticationError(ErrorReason.SESSION_NOT_FOUND_OR_EXPIRED)

        ttl_remaining = max(1, math.ceil((expires_at - now).total_seconds()))
        try:
            await asyncio.wait_for(
                self.cache.extend(token, expires_at, ttl_remaining), self.cache_timeout
            )
        except Exception as e:
            logger.warning(f"Failed to extend cached session TTL: {e}", exc_info=True)

        return RefreshedSession(session_token=token, ttl=self.session_ttl, expires_at=expires_at)

    async def revoke(self, token: Optional[str]) -> None:
        """
        Destroy a session. Idempotent: unknown tokens succeed too.

        Raises:
            AuthenticationError: missing_token
        """
        if not token:
            raise AuthenticationError(ErrorReason.MISSING_TOKEN)

        deleted = await asyncio.wait_for(self.store.revoke_session(token), self.store_timeout)

        try:
            await asyncio.wait_for(self.cache.delete(token), self.cache_timeout)
        except Exception as e:
            # The projection survives until its TTL; nothing more to do synchronously
            logger.error(f"Failed to evict revoked session from cache: {e}", exc_info=True)

        if deleted:
            logger.info("Revoked session")
