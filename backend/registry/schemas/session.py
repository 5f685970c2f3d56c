"""Schemas for resolved sessions."""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from registry.schemas.records import SessionRecord, UtcDatetime


class SessionIdentity(BaseModel):
    """
    Resolved session identity.

    Doubles as the cache projection: the Redis value for a token is this
    model serialized as JSON. Carries no token, since the token is the key.
    """
    session_id: uuid.UUID
    api_key_id: uuid.UUID
    game_id: uuid.UUID
    universe_id: int
    place_id: Optional[int] = None
    job_id: Optional[str] = None
    tier: str
    scopes: List[str]
    expires_at: UtcDatetime

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionIdentity":
        """Project a durable session row."""
        return cls(
            session_id=record.id,
            api_key_id=record.api_key_id,
            game_id=record.game_id,
            universe_id=record.universe_id,
            place_id=record.place_id,
            job_id=record.job_id,
            tier=record.tier,
            scopes=list(record.scopes),
            expires_at=record.expires_at,
        )

    def is_expired(self, now: datetime) -> bool:
        """True once the session's own expiry has passed."""
        return self.expires_at <= now
