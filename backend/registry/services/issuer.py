"""Session issuance: API key + license -> short-lived session token."""
import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from registry.constants import ErrorReason, JobName
from registry.schemas.records import SessionRecord
from registry.schemas.session import SessionIdentity
from registry.services.licensing import check_license, scopes_for_tier
from registry.stores.interfaces import CredentialStore, SessionCache
from registry.utils.clock import utc_now
from registry.utils.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from registry.utils.hashing import generate_session_token, hash_api_key
from registry.utils.logger import logger
from registry.workers.dispatch import JobDispatcher


@dataclass
class IssuedSession:
    """Result of a successful validation."""
    session_token: str
    tier: str
    scopes: List[str]
    ttl: int
    expires_at: datetime


class SessionIssuer:
    """Validates API keys against license state and mints sessions."""

    def __init__(
        self,
        store: CredentialStore,
        cache: SessionCache,
        dispatcher: JobDispatcher,
        session_ttl: int,
        token_bytes: int,
        store_timeout: float,
        cache_timeout: float,
        api_key_salt: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cache = cache
        self.dispatcher = dispatcher
        self.session_ttl = session_ttl
        self.token_bytes = token_bytes
        self.store_timeout = store_timeout
        self.cache_timeout = cache_timeout
        self.api_key_salt = api_key_salt
        self.clock = clock

    async def validate(
        self,
        raw_api_key: Optional[str],
        universe_id: Optional[Union[int, str]],
        place_id: Optional[int] = None,
        job_id: Optional[str] = None,
    ) -> IssuedSession:
        """
        Exchange an API key for a session.

        The durable session row is written before the token is returned.
        The cache write and the last-used touch are best-effort.

        Args:
            raw_api_key: Raw key presented by the game server
            universe_id: Platform universe the server is running in
            place_id: Optional platform place ID
            job_id: Optional platform server instance ID

        Returns:
            The issued session

        Raises:
            ValidationError: Key or universe missing
            AuthenticationError: Unknown or revoked key
            NotFoundError: Key references a missing game
            ForbiddenError: Universe mismatch or license refuses issuance
        """
        if not raw_api_key or universe_id is None or universe_id in ("", 0):
            raise ValidationError(ErrorReason.BAD_REQUEST)

        key_hash = hash_api_key(raw_api_key, self.api_key_salt)

        api_key = await self._durable(self.store.find_api_key_by_hash(key_hash))
        if api_key is None:
            raise AuthenticationError(ErrorReason.INVALID_API_KEY)
        if not api_key.is_active:
            logger.info(f"Rejected revoked API key {api_key.id}")
            raise AuthenticationError(ErrorReason.API_KEY_REVOKED)

        game = await self._durable(self.store.find_game(api_key.game_id))
        if game is None:
            logger.warning(f"API key {api_key.id} references missing game {api_key.game_id}")
            raise NotFoundError(ErrorReason.GAME_NOT_FOUND)

        if str(game.universe_id) != str(universe_id).strip():
            logger.warning(
                f"Universe mismatch for game {game.id}: key bound to {game.universe_id}, "
                f"presented {universe_id}"
            )
            raise ForbiddenError(ErrorReason.UNIVERSE_MISMATCH)

        now = self.clock()
        license = check_license(await self._durable(self.store.find_license(game.id)), now)
        scopes = scopes_for_tier(license.tier, license.is_internal)

        token = generate_session_token(self.token_bytes)
        expires_at = now + timedelta(seconds=self.session_ttl)

        session = await self._durable(
            self.store.create_session(
                SessionRecord(
                    id=uuid.uuid4(),
                    api_key_id=api_key.id,
                    game_id=game.id,
                    universe_id=game.universe_id,
                    place_id=place_id,
                    job_id=job_id,
                    tier=license.tier,
                    scopes=scopes,
                    token=token,
                    expires_at=expires_at,
                )
            )
        )

        try:
            await asyncio.wait_for(
                self.cache.set(token, SessionIdentity.from_record(session), self.session_ttl),
                self.cache_timeout,
            )
        except Exception as e:
            logger.warning(f"Failed to cache session {session.id}: {e}", exc_info=True)

        self.dispatcher.dispatch(JobName.TOUCH_API_KEY, api_key_id=api_key.id)

        logger.info(f"Issued session {session.id} for game {game.id} (tier {license.tier})")
        return IssuedSession(
            session_token=token,
            tier=license.tier,
            scopes=scopes,
            ttl=self.session_ttl,
            expires_at=expires_at,
        )

    async def _durable(self, call):
        return await asyncio.wait_for(call, self.store_timeout)
