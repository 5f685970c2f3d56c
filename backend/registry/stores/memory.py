"""In-memory stores for tests and local runs without Postgres/Redis.

Dict-backed, lose everything on restart. TTL is enforced lazily on read:
expired cache entries and expired session rows are treated as absent.
"""
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from registry.schemas.records import ApiKeyRecord, GameRecord, LicenseRecord, SessionRecord
from registry.schemas.session import SessionIdentity
from registry.stores.interfaces import CredentialStore, SessionCache
from registry.utils.clock import ensure_utc, utc_now


class InMemoryCredentialStore(CredentialStore):
    """Dict-backed CredentialStore.

    The add_* helpers are provisioning shortcuts for tests; they are not
    part of the CredentialStore interface.
    """

    def __init__(self) -> None:
        self.api_keys: Dict[uuid.UUID, ApiKeyRecord] = {}
        self.games: Dict[uuid.UUID, GameRecord] = {}
        self.licenses: Dict[uuid.UUID, LicenseRecord] = {}  # keyed by game_id
        self.sessions: Dict[str, SessionRecord] = {}  # keyed by token
        self.usage: Dict[Tuple[uuid.UUID, datetime], Dict[str, int]] = {}

    # -- provisioning helpers ----------------------------------------------

    def add_game(self, game: GameRecord) -> GameRecord:
        self.games[game.id] = game
        return game

    def add_license(self, license: LicenseRecord) -> LicenseRecord:
        self.licenses[license.game_id] = license
        return license

    def add_api_key(self, api_key: ApiKeyRecord) -> ApiKeyRecord:
        self.api_keys[api_key.id] = api_key
        return api_key

    # -- CredentialStore ---------------------------------------------------

    async def find_api_key_by_hash(self, key_hash: str) -> Optional[ApiKeyRecord]:
        for api_key in self.api_keys.values():
            if api_key.key_hash == key_hash:
                return api_key
        return None

    async def find_game(self, game_id: uuid.UUID) -> Optional[GameRecord]:
        return self.games.get(game_id)

    async def find_license(self, game_id: uuid.UUID) -> Optional[LicenseRecord]:
        return self.licenses.get(game_id)

    async def create_session(self, session: SessionRecord) -> SessionRecord:
        if session.token in self.sessions:
            raise ValueError("Session token already exists")
        self.sessions[session.token] = session
        return session

    async def find_session(self, token: str) -> Optional[SessionRecord]:
        session = self.sessions.get(token)
        if session is None or session.expires_at <= utc_now():
            return None
        return session

    async def refresh_session(self, token: str, new_expiry: datetime) -> Optional[datetime]:
        session = await self.find_session(token)
        if session is None:
            return None
        expires_at = max(session.expires_at, ensure_utc(new_expiry))
        self.sessions[token] = session.model_copy(update={"expires_at": expires_at})
        return expires_at

    async def revoke_session(self, token: str) -> bool:
        return self.sessions.pop(token, None) is not None

    async def touch_api_key(self, api_key_id: uuid.UUID) -> None:
        api_key = self.api_keys.get(api_key_id)
        if api_key is not None:
            self.api_keys[api_key_id] = api_key.model_copy(update={"last_used_at": utc_now()})

    async def record_usage(
        self,
        game_id: uuid.UUID,
        period_start: datetime,
        api_calls: int,
        transport_msgs: int,
        peak_ccu: int,
    ) -> None:
        bucket = self.usage.setdefault(
            (game_id, ensure_utc(period_start)),
            {"api_calls": 0, "transport_msgs": 0, "peak_ccu": 0},
        )
        bucket["api_calls"] += api_calls
        bucket["transport_msgs"] += transport_msgs
        bucket["peak_ccu"] = max(bucket["peak_ccu"], peak_ccu)

    async def purge_expired_sessions(self, expired_before: datetime) -> int:
        cutoff = ensure_utc(expired_before)
        stale: List[str] = [
            token for token, session in self.sessions.items() if session.expires_at < cutoff
        ]
        for token in stale:
            del self.sessions[token]
        return len(stale)


class InMemorySessionCache(SessionCache):
    """Dict-backed SessionCache with lazily enforced TTLs."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[SessionIdentity, datetime]] = {}

    def __contains__(self, token: str) -> bool:
        return self._live_entry(token) is not None

    def _live_entry(self, token: str) -> Optional[Tuple[SessionIdentity, datetime]]:
        entry = self._entries.get(token)
        if entry is None:
            return None
        if entry[1] <= utc_now():
            del self._entries[token]
            return None
        return entry

    async def get(self, token: str) -> Optional[SessionIdentity]:
        entry = self._live_entry(token)
        return entry[0] if entry else None

    async def set(self, token: str, identity: SessionIdentity, ttl_seconds: int) -> None:
        self._entries[token] = (identity, utc_now() + timedelta(seconds=ttl_seconds))

    async def extend(self, token: str, expires_at: datetime, ttl_seconds: int) -> bool:
        entry = self._live_entry(token)
        if entry is None:
            return False
        identity = entry[0].model_copy(update={"expires_at": ensure_utc(expires_at)})
        await self.set(token, identity, ttl_seconds)
        return True

    async def delete(self, token: str) -> None:
        self._entries.pop(token, None)
