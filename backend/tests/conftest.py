"""Shared test fixtures.

Factory-pattern fixtures return callables accepting **overrides. Services
are wired against the in-memory stores; nothing here needs Postgres or
Redis.

Fixtures:
    make_settings: Factory for Settings instances
    store / cache / dispatcher: Fresh in-memory store, cache and inline dispatcher
    provision: Factory that seeds a game, license and API key into the store
    make_session_record: Factory for durable session rows
    make_issuer / resolver / lifecycle: Services wired to the fixtures above
"""

import os

# Must be set before anything imports registry.config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import asyncio  # noqa: E402
import uuid  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402

from registry.config import Settings  # noqa: E402
from registry.schemas.records import (  # noqa: E402
    ApiKeyRecord,
    GameRecord,
    LicenseRecord,
    SessionRecord,
)
from registry.schemas.session import SessionIdentity  # noqa: E402
from registry.services.issuer import SessionIssuer  # noqa: E402
from registry.services.lifecycle import SessionLifecycleManager  # noqa: E402
from registry.services.resolver import SessionResolver  # noqa: E402
from registry.stores.interfaces import SessionCache  # noqa: E402
from registry.stores.memory import InMemoryCredentialStore, InMemorySessionCache  # noqa: E402
from registry.utils.clock import utc_now  # noqa: E402
from registry.utils.hashing import generate_session_token, hash_api_key  # noqa: E402
from registry.workers.dispatch import InlineDispatcher  # noqa: E402

RAW_API_KEY = "wrn_test_4f1c9a0d2b7e48e6a1c3d5f7b9e0a2c4"
UNIVERSE_ID = 4242424242
SESSION_TTL = 1800


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings():
    """Returns a factory for Settings that ignores any local .env file."""

    def _make(**overrides) -> Settings:
        defaults = {"database_url": "sqlite://", "environment": "test"}
        defaults.update(overrides)
        return Settings(_env_file=None, **defaults)

    return _make


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def cache() -> InMemorySessionCache:
    return InMemorySessionCache()


@pytest.fixture
def dispatcher(store) -> InlineDispatcher:
    return InlineDispatcher(store, timeout_seconds=1.0)


class BrokenSessionCache(SessionCache):
    """Cache whose every call fails, as if Redis were down."""

    async def get(self, token):
        raise ConnectionError("cache down")

    async def set(self, token, identity, ttl_seconds):
        raise ConnectionError("cache down")

    async def extend(self, token, expires_at, ttl_seconds):
        raise ConnectionError("cache down")

    async def delete(self, token):
        raise ConnectionError("cache down")


class StalledSessionCache(InMemorySessionCache):
    """Cache whose reads hang, as if Redis stopped answering."""

    async def get(self, token):
        await asyncio.sleep(10)
        return await super().get(token)


@pytest.fixture
def broken_cache() -> BrokenSessionCache:
    return BrokenSessionCache()


@pytest.fixture
def stalled_cache() -> StalledSessionCache:
    return StalledSessionCache()


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------


@dataclass
class Provisioned:
    """What provision() seeded."""
    raw_key: str
    api_key: ApiKeyRecord
    game: GameRecord
    license: Optional[LicenseRecord]


@pytest.fixture
def provision(store):
    """Returns a factory that seeds a game, its license and an API key.

    Defaults produce an active mach3 license with no hard expiry and an
    active key for RAW_API_KEY. Pass license_status=None for a game with
    no license.
    """

    def _make(
        raw_key: str = RAW_API_KEY,
        universe_id: int = UNIVERSE_ID,
        tier: str = "mach3",
        license_status: Optional[str] = "active",
        is_internal: bool = False,
        license_expires_at: Optional[datetime] = None,
        key_active: bool = True,
    ) -> Provisioned:
        game = store.add_game(
            GameRecord(id=uuid.uuid4(), studio_id=uuid.uuid4(), name="Test Game", universe_id=universe_id)
        )
        license = None
        if license_status is not None:
            license = store.add_license(
                LicenseRecord(
                    id=uuid.uuid4(),
                    game_id=game.id,
                    tier=tier,
                    status=license_status,
                    is_internal=is_internal,
                    expires_at=license_expires_at,
                )
            )
        api_key = store.add_api_key(
            ApiKeyRecord(
                id=uuid.uuid4(),
                game_id=game.id,
                key_hash=hash_api_key(raw_key, ""),
                key_prefix=raw_key[:8],
                is_active=key_active,
            )
        )
        return Provisioned(raw_key=raw_key, api_key=api_key, game=game, license=license)

    return _make


@pytest.fixture
def make_session_record():
    """Returns a factory for durable session rows. Defaults expire in 30 minutes."""

    def _make(**overrides) -> SessionRecord:
        defaults = {
            "id": uuid.uuid4(),
            "api_key_id": uuid.uuid4(),
            "game_id": uuid.uuid4(),
            "universe_id": UNIVERSE_ID,
            "tier": "mach2",
            "scopes": ["layout.*", "style.*", "dom.*", "factory.*"],
            "token": generate_session_token(32),
            "expires_at": utc_now() + timedelta(seconds=SESSION_TTL),
        }
        defaults.update(overrides)
        return SessionRecord(**defaults)

    return _make


@pytest.fixture
def make_identity(make_session_record):
    """Returns a factory for session identities (the cache projection)."""

    def _make(**overrides) -> SessionIdentity:
        return SessionIdentity.from_record(make_session_record(**overrides))

    return _make


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def make_issuer(store, cache, dispatcher):
    """Returns a factory for SessionIssuer; override any constructor argument."""

    def _make(**overrides) -> SessionIssuer:
        defaults = {
            "store": store,
            "cache": cache,
            "dispatcher": dispatcher,
            "session_ttl": SESSION_TTL,
            "token_bytes": 32,
            "store_timeout": 1.0,
            "cache_timeout": 0.05,
            "api_key_salt": "",
        }
        defaults.update(overrides)
        return SessionIssuer(**defaults)

    return _make


@pytest.fixture
def make_resolver(store, cache):
    """Returns a factory for SessionResolver; override any constructor argument."""

    def _make(**overrides) -> SessionResolver:
        defaults = {
            "store": store,
            "cache": cache,
            "store_timeout": 1.0,
            "cache_timeout": 0.05,
        }
        defaults.update(overrides)
        return SessionResolver(**defaults)

    return _make


@pytest.fixture
def resolver(make_resolver) -> SessionResolver:
    return make_resolver()


@pytest.fixture
def make_lifecycle(store, cache):
    """Returns a factory for SessionLifecycleManager."""

    def _make(**overrides) -> SessionLifecycleManager:
        defaults = {
            "store": store,
            "cache": cache,
            "session_ttl": SESSION_TTL,
            "store_timeout": 1.0,
            "cache_timeout": 0.05,
        }
        defaults.update(overrides)
        return SessionLifecycleManager(**defaults)

    return _make


@pytest.fixture
def lifecycle(make_lifecycle) -> SessionLifecycleManager:
    return make_lifecycle()
