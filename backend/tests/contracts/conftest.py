"""Fixtures for contract tests, one parameterized fixture per store interface.

Each fixture yields a fresh implementation with the same provisioning
(one studio, game, active license and API key), so every contract test
runs unchanged against every implementation.

To cover a new implementation, add its param string and a branch that
yields it.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from registry.database import Base
from registry.models import APIKey, Game, License, Studio, UsageRecord
from registry.schemas.records import ApiKeyRecord, GameRecord, LicenseRecord
from registry.stores.interfaces import CredentialStore
from registry.stores.memory import InMemoryCredentialStore, InMemorySessionCache
from registry.stores.sql import SqlCredentialStore
from registry.utils.clock import ensure_utc
from registry.utils.hashing import hash_api_key

KEY_HASH = hash_api_key("wrn_contract_key", "")
UNIVERSE_ID = 1818181818


@dataclass
class SeededStore:
    """A store plus the IDs of what it was provisioned with."""
    store: CredentialStore
    game_id: uuid.UUID
    license_id: uuid.UUID
    api_key_id: uuid.UUID
    key_hash: str
    universe_id: int
    read_usage: Callable[[uuid.UUID, datetime], Optional[Dict[str, Any]]]


def _seed_memory() -> SeededStore:
    store = InMemoryCredentialStore()
    game = store.add_game(GameRecord(id=uuid.uuid4(), name="Contract Game", universe_id=UNIVERSE_ID))
    license = store.add_license(
        LicenseRecord(id=uuid.uuid4(), game_id=game.id, tier="mach3", status="active")
    )
    api_key = store.add_api_key(
        ApiKeyRecord(id=uuid.uuid4(), game_id=game.id, key_hash=KEY_HASH, key_prefix="wrn_cont")
    )

    def read_usage(game_id, period_start):
        return store.usage.get((game_id, ensure_utc(period_start)))

    return SeededStore(
        store=store,
        game_id=game.id,
        license_id=license.id,
        api_key_id=api_key.id,
        key_hash=KEY_HASH,
        universe_id=UNIVERSE_ID,
        read_usage=read_usage,
    )


def _seed_sql():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    studio_id, game_id, license_id, api_key_id = (uuid.uuid4() for _ in range(4))

    # Only the local ids are read after commit; the instances are detached by then
    db = factory()
    db.add_all([
        Studio(id=studio_id, name="Contract Studio", slug="contract", owner_email="ops@example.com"),
        Game(id=game_id, studio_id=studio_id, name="Contract Game", universe_id=UNIVERSE_ID),
        License(id=license_id, game_id=game_id, tier="mach3", status="active"),
        APIKey(id=api_key_id, game_id=game_id, key_hash=KEY_HASH, key_prefix="wrn_cont"),
    ])
    db.commit()
    db.close()

    def read_usage(game_id, period_start):
        db = factory()
        try:
            row = db.query(UsageRecord).filter(
                UsageRecord.game_id == game_id,
                UsageRecord.period_start == ensure_utc(period_start),
            ).first()
            if row is None:
                return None
            return {
                "api_calls": row.api_calls,
                "transport_msgs": row.transport_msgs,
                "peak_ccu": row.peak_ccu,
            }
        finally:
            db.close()

    seeded_store = SeededStore(
        store=SqlCredentialStore(factory),
        game_id=game_id,
        license_id=license_id,
        api_key_id=api_key_id,
        key_hash=KEY_HASH,
        universe_id=UNIVERSE_ID,
        read_usage=read_usage,
    )
    return seeded_store, engine


@pytest_asyncio.fixture(params=["memory", "sql"])
async def seeded(request):
    """Yields a provisioned CredentialStore implementation."""
    if request.param == "memory":
        yield _seed_memory()
    elif request.param == "sql":
        seeded_store, engine = _seed_sql()
        yield seeded_store
        engine.dispose()


@pytest_asyncio.fixture(params=["memory"])
async def session_cache(request):
    """Yields a SessionCache implementation.

    RedisSessionCache is covered against a mocked client in test_redis_cache.py.
    """
    if request.param == "memory":
        yield InMemorySessionCache()
