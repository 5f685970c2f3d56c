"""Tests for SessionIssuer.validate."""

import re
import uuid
from datetime import timedelta

import pytest

from registry.schemas.records import ApiKeyRecord, GameRecord, LicenseRecord
from registry.schemas.session import SessionIdentity
from registry.stores.memory import InMemoryCredentialStore
from registry.utils.clock import utc_now
from registry.utils.hashing import hash_api_key
from registry.utils.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


class CreateSessionFailsStore(InMemoryCredentialStore):
    async def create_session(self, session):
        raise ConnectionError("database unavailable")


class TestValidateSuccess:

    @pytest.mark.asyncio
    async def test_issues_session(self, make_issuer, provision) -> None:
        seeded = provision(tier="mach3")
        now = utc_now()
        issuer = make_issuer(clock=lambda: now)

        issued = await issuer.validate(seeded.raw_key, seeded.game.universe_id)

        assert re.fullmatch(r"[0-9a-f]{64}", issued.session_token)
        assert issued.tier == "mach3"
        assert "transport.*" in issued.scopes
        assert issued.ttl == 1800
        assert issued.expires_at == now + timedelta(seconds=1800)

    @pytest.mark.asyncio
    async def test_durable_row_exists_before_return(self, make_issuer, provision, store) -> None:
        seeded = provision()
        issued = await make_issuer().validate(seeded.raw_key, seeded.game.universe_id, 123, "job-1")

        row = store.sessions[issued.session_token]
        assert row.api_key_id == seeded.api_key.id
        assert row.game_id == seeded.game.id
        assert row.universe_id == seeded.game.universe_id
        assert row.place_id == 123
        assert row.job_id == "job-1"
        assert row.scopes == issued.scopes

    @pytest.mark.asyncio
    async def test_cache_projection_written(self, make_issuer, provision, cache, store) -> None:
        seeded = provision()
        issued = await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)

        cached = await cache.get(issued.session_token)
        assert cached == SessionIdentity.from_record(store.sessions[issued.session_token])

    @pytest.mark.asyncio
    async def test_touches_api_key_in_background(
        self, make_issuer, provision, store, dispatcher
    ) -> None:
        seeded = provision()
        await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        await dispatcher.drain()
        assert store.api_keys[seeded.api_key.id].last_used_at is not None

    @pytest.mark.asyncio
    async def test_universe_id_as_string_matches(self, make_issuer, provision) -> None:
        seeded = provision()
        issued = await make_issuer().validate(seeded.raw_key, str(seeded.game.universe_id))
        assert issued.session_token

    @pytest.mark.asyncio
    async def test_internal_license_gets_wildcard(self, make_issuer, provision) -> None:
        seeded = provision(tier="mach2", is_internal=True)
        issued = await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        assert issued.scopes == ["*"]

    @pytest.mark.asyncio
    async def test_each_validation_mints_new_token(self, make_issuer, provision) -> None:
        seeded = provision()
        issuer = make_issuer()
        first = await issuer.validate(seeded.raw_key, seeded.game.universe_id)
        second = await issuer.validate(seeded.raw_key, seeded.game.universe_id)
        assert first.session_token != second.session_token

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_issuance(
        self, make_issuer, provision, broken_cache, store
    ) -> None:
        seeded = provision()
        issued = await make_issuer(cache=broken_cache).validate(
            seeded.raw_key, seeded.game.universe_id
        )
        assert issued.session_token in store.sessions


class TestValidateRejections:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_key", [None, ""])
    async def test_missing_api_key(self, make_issuer, provision, raw_key) -> None:
        seeded = provision()
        with pytest.raises(ValidationError) as exc_info:
            await make_issuer().validate(raw_key, seeded.game.universe_id)
        assert exc_info.value.reason == "bad_request"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("universe_id", [None, "", 0])
    async def test_missing_universe(self, make_issuer, provision, universe_id) -> None:
        seeded = provision()
        with pytest.raises(ValidationError):
            await make_issuer().validate(seeded.raw_key, universe_id)

    @pytest.mark.asyncio
    async def test_unknown_key(self, make_issuer, provision, store) -> None:
        seeded = provision()
        with pytest.raises(AuthenticationError) as exc_info:
            await make_issuer().validate("wrn_not_a_real_key", seeded.game.universe_id)
        assert exc_info.value.reason == "invalid_api_key"
        assert store.sessions == {}

    @pytest.mark.asyncio
    async def test_revoked_key(self, make_issuer, provision) -> None:
        seeded = provision(key_active=False)
        with pytest.raises(AuthenticationError) as exc_info:
            await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        assert exc_info.value.reason == "api_key_revoked"

    @pytest.mark.asyncio
    async def test_missing_game(self, make_issuer, provision, store) -> None:
        seeded = provision()
        del store.games[seeded.game.id]
        with pytest.raises(NotFoundError) as exc_info:
            await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        assert exc_info.value.reason == "game_not_found"

    @pytest.mark.asyncio
    async def test_universe_mismatch(self, make_issuer, provision, store) -> None:
        seeded = provision()
        with pytest.raises(ForbiddenError) as exc_info:
            await make_issuer().validate(seeded.raw_key, seeded.game.universe_id + 1)
        assert exc_info.value.reason == "universe_mismatch"
        assert store.sessions == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "license_kwargs, reason",
        [
            ({"license_status": None}, "no_license"),
            ({"license_status": "suspended"}, "license_suspended"),
            ({"license_status": "expired"}, "license_expired"),
            ({"license_status": "trial"}, "license_inactive"),
        ],
    )
    async def test_license_refusals(
        self, make_issuer, provision, store, license_kwargs, reason
    ) -> None:
        seeded = provision(**license_kwargs)
        with pytest.raises(ForbiddenError) as exc_info:
            await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        assert exc_info.value.reason == reason
        assert store.sessions == {}

    @pytest.mark.asyncio
    async def test_license_past_hard_expiry(self, make_issuer, provision) -> None:
        seeded = provision(license_expires_at=utc_now() - timedelta(minutes=1))
        with pytest.raises(ForbiddenError) as exc_info:
            await make_issuer().validate(seeded.raw_key, seeded.game.universe_id)
        assert exc_info.value.reason == "license_expired"

    @pytest.mark.asyncio
    async def test_durable_write_failure_propagates_and_skips_cache(
        self, make_issuer, cache
    ) -> None:
        failing = CreateSessionFailsStore()
        game = failing.add_game(GameRecord(id=uuid.uuid4(), universe_id=99))
        failing.add_license(
            LicenseRecord(id=uuid.uuid4(), game_id=game.id, tier="mach2", status="active")
        )
        failing.add_api_key(
            ApiKeyRecord(id=uuid.uuid4(), game_id=game.id, key_hash=hash_api_key("k-1", ""))
        )

        issuer = make_issuer(store=failing)
        with pytest.raises(ConnectionError):
            await issuer.validate("k-1", 99)
        assert cache._entries == {}
