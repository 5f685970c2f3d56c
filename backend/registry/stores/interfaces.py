"""Store interfaces: the durable credential store and the session cache.

Services receive implementations at construction and never import a
concrete store. Production wiring uses SqlCredentialStore and
RedisSessionCache; tests and local runs use the in-memory versions.

Implementations do not swallow their own failures. Whether a failure is
fatal (durable path) or ignorable (cache path) is decided by the caller.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from registry.schemas.records import ApiKeyRecord, GameRecord, LicenseRecord, SessionRecord
from registry.schemas.session import SessionIdentity


class CredentialStore(ABC):
    """Durable source of truth for keys, games, licenses, sessions and usage."""

    @abstractmethod
    async def find_api_key_by_hash(self, key_hash: str) -> Optional[ApiKeyRecord]:
        """Look up an API key by its digest, active or not."""
        ...

    @abstractmethod
    async def find_game(self, game_id: uuid.UUID) -> Optional[GameRecord]:
        ...

    @abstractmethod
    async def find_license(self, game_id: uuid.UUID) -> Optional[LicenseRecord]:
        ...

    @abstractmethod
    async def create_session(self, session: SessionRecord) -> SessionRecord:
        """Insert a new session row. Returns the stored row."""
        ...

    @abstractmethod
    async def find_session(self, token: str) -> Optional[SessionRecord]:
        """Return the session for a token, or None if missing or expired."""
        ...

    @abstractmethod
    async def refresh_session(self, token: str, new_expiry: datetime) -> Optional[datetime]:
        """Push an unexpired session's expiry forward.

        The stored expiry becomes max(current, new_expiry), so a refresh
        never shortens a session.

        Returns:
            The resulting expiry, or None if no unexpired session matches.
        """
        ...

    @abstractmethod
    async def revoke_session(self, token: str) -> bool:
        """Delete a session row. Returns False if nothing matched."""
        ...

    @abstractmethod
    async def touch_api_key(self, api_key_id: uuid.UUID) -> None:
        """Set last_used_at to now."""
        ...

    @abstractmethod
    async def record_usage(
        self,
        game_id: uuid.UUID,
        period_start: datetime,
        api_calls: int,
        transport_msgs: int,
        peak_ccu: int,
    ) -> None:
        """Upsert an hourly usage bucket.

        Counts are added to the bucket; peak_ccu keeps the maximum seen.
        """
        ...

    @abstractmethod
    async def purge_expired_sessions(self, expired_before: datetime) -> int:
        """Delete sessions that expired before the cutoff. Returns rows deleted."""
        ...


class SessionCache(ABC):
    """Fast, lossy projection of sessions keyed by token.

    Never authoritative. Entries vanish when their TTL elapses.
    """

    @abstractmethod
    async def get(self, token: str) -> Optional[SessionIdentity]:
        ...

    @abstractmethod
    async def set(self, token: str, identity: SessionIdentity, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def extend(self, token: str, expires_at: datetime, ttl_seconds: int) -> bool:
        """Rewrite an existing entry's expiry and TTL.

        Returns:
            False if the token is not cached (nothing is created).
        """
        ...

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Remove an entry. No-op if absent."""
        ...
