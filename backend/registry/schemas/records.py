"""Store-facing records returned by CredentialStore implementations.

Rows cross the store boundary as these models rather than ORM instances,
so services never hold a database session and in-memory stores can stand
in for the SQL store.
"""
import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel

from registry.utils.clock import ensure_utc

# Timestamps read back from SQLite are naive; normalise everything to aware UTC.
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class ApiKeyRecord(BaseModel):
    """Stored API key. The raw secret is never part of the record."""
    id: uuid.UUID
    game_id: uuid.UUID
    key_hash: str
    key_prefix: str = ""
    is_active: bool = True
    last_used_at: Optional[UtcDatetime] = None

    class Config:
        from_attributes = True


class GameRecord(BaseModel):
    """Tenant game bound to one platform universe."""
    id: uuid.UUID
    studio_id: Optional[uuid.UUID] = None
    name: str = ""
    universe_id: int

    class Config:
        from_attributes = True


class LicenseRecord(BaseModel):
    """License state for a game."""
    id: uuid.UUID
    game_id: uuid.UUID
    tier: str
    status: str
    is_internal: bool = False
    expires_at: Optional[UtcDatetime] = None

    class Config:
        from_attributes = True


class SessionRecord(BaseModel):
    """Durable session row."""
    id: uuid.UUID
    api_key_id: uuid.UUID
    game_id: uuid.UUID
    universe_id: int
    place_id: Optional[int] = None
    job_id: Optional[str] = None
    tier: str
    scopes: List[str]
    token: str
    expires_at: UtcDatetime

    class Config:
        from_attributes = True
