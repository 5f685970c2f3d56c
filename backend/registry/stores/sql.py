"""SQLAlchemy-backed credential store.

Queries run on a sync ORM session in Starlette's threadpool so the event
loop never blocks on the database and callers can bound each call with
asyncio.wait_for.
"""
import uuid
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from registry.models import APIKey, Game, License, Session as SessionModel, UsageRecord
from registry.schemas.records import ApiKeyRecord, GameRecord, LicenseRecord, SessionRecord
from registry.stores.interfaces import CredentialStore
from registry.utils.clock import ensure_utc, utc_now

T = TypeVar("T")

# Dialect -> (INSERT construct with ON CONFLICT, scalar max function)
_UPSERT_DIALECTS = {
    "postgresql": (pg_insert, func.greatest),
    "sqlite": (sqlite_insert, func.max),
}


class SqlCredentialStore(CredentialStore):
    """CredentialStore over the registry's relational schema."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        return await run_in_threadpool(self._with_session, fn, *args)

    def _with_session(self, fn: Callable[..., T], *args: Any) -> T:
        db = self._session_factory()
        try:
            return fn(db, *args)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # -- lookups -----------------------------------------------------------

    async def find_api_key_by_hash(self, key_hash: str) -> Optional[ApiKeyRecord]:
        return await self._run(self._find_api_key_by_hash, key_hash)

    @staticmethod
    def _find_api_key_by_hash(db: Session, key_hash: str) -> Optional[ApiKeyRecord]:
        row = db.query(APIKey).filter(APIKey.key_hash == key_hash).first()
        return ApiKeyRecord.model_validate(row) if row else None

    async def find_game(self, game_id: uuid.UUID) -> Optional[GameRecord]:
        return await self._run(self._find_game, game_id)

    @staticmethod
    def _find_game(db: Session, game_id: uuid.UUID) -> Optional[GameRecord]:
        row = db.query(Game).filter(Game.id == game_id).first()
        return GameRecord.model_validate(row) if row else None

    async def find_license(self, game_id: uuid.UUID) -> Optional[LicenseRecord]:
        return await self._run(self._find_license, game_id)

    @staticmethod
    def _find_license(db: Session, game_id: uuid.UUID) -> Optional[LicenseRecord]:
        row = db.query(License).filter(License.game_id == game_id).first()
        return LicenseRecord.model_validate(row) if row else None

    # -- sessions ----------------------------------------------------------

    async def create_session(self, session: SessionRecord) -> SessionRecord:
        return await self._run(self._create_session, session)

    @staticmethod
    def _create_session(db: Session, session: SessionRecord) -> SessionRecord:
        row = SessionModel(
            id=session.id,
            api_key_id=session.api_key_id,
            game_id=session.game_id,
            universe_id=session.universe_id,
            place_id=session.place_id,
            job_id=session.job_id,
            tier=session.tier,
            scopes=list(session.scopes),
            token=session.token,
            expires_at=session.expires_at,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return SessionRecord.model_validate(row)

    async def find_session(self, token: str) -> Optional[SessionRecord]:
        return await self._run(self._find_session, token)

    @staticmethod
    def _find_session(db: Session, token: str) -> Optional[SessionRecord]:
        row = db.query(SessionModel).filter(
            SessionModel.token == token,
            SessionModel.expires_at > utc_now(),
        ).first()
        return SessionRecord.model_validate(row) if row else None

    async def refresh_session(self, token: str, new_expiry: datetime) -> Optional[datetime]:
        return await self._run(self._refresh_session, token, new_expiry)

    @staticmethod
    def _refresh_session(db: Session, token: str, new_expiry: datetime) -> Optional[datetime]:
        row = db.query(SessionModel).filter(
            SessionModel.token == token,
            SessionModel.expires_at > utc_now(),
        ).with_for_update().first()
        if not row:
            return None

        expires_at = max(ensure_utc(row.expires_at), ensure_utc(new_expiry))
        row.expires_at = expires_at
        db.commit()
        return expires_at

    async def revoke_session(self, token: str) -> bool:
        return await self._run(self._revoke_session, token)

    @staticmethod
    def _revoke_session(db: Session, token: str) -> bool:
        deleted = db.query(SessionModel).filter(SessionModel.token == token).delete(
            synchronize_session=False
        )
        db.commit()
        return deleted > 0

    async def purge_expired_sessions(self, expired_before: datetime) -> int:
        return await self._run(self._purge_expired_sessions, expired_before)

    @staticmethod
    def _purge_expired_sessions(db: Session, expired_before: datetime) -> int:
        deleted = db.query(SessionModel).filter(
            SessionModel.expires_at < ensure_utc(expired_before)
        ).delete(synchronize_session=False)
        db.commit()
        return deleted

    # -- side effects ------------------------------------------------------

    async def touch_api_key(self, api_key_id: uuid.UUID) -> None:
        await self._run(self._touch_api_key, api_key_id)

    @staticmethod
    def _touch_api_key(db: Session, api_key_id: uuid.UUID) -> None:
        db.query(APIKey).filter(APIKey.id == api_key_id).update(
            {APIKey.last_used_at: utc_now()}, synchronize_session=False
        )
        db.commit()

    async def record_usage(
        self,
        game_id: uuid.UUID,
        period_start: datetime,
        api_calls: int,
        transport_msgs: int,
        peak_ccu: int,
    ) -> None:
        await self._run(
            self._record_usage, game_id, period_start, api_calls, transport_msgs, peak_ccu
        )

    @staticmethod
    def _record_usage(
        db: Session,
        game_id: uuid.UUID,
        period_start: datetime,
        api_calls: int,
        transport_msgs: int,
        peak_ccu: int,
    ) -> None:
        dialect = db.get_bind().dialect.name
        if dialect not in _UPSERT_DIALECTS:
            raise NotImplementedError(f"Usage upsert not supported on {dialect}")
        insert, greatest = _UPSERT_DIALECTS[dialect]

        table = UsageRecord.__table__
        stmt = insert(table).values(
            game_id=game_id,
            period_start=ensure_utc(period_start),
            api_calls=api_calls,
            transport_msgs=transport_msgs,
            peak_ccu=peak_ccu,
            unique_sessions=0,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["game_id", "period_start"],
            set_={
                "api_calls": table.c.api_calls + stmt.excluded.api_calls,
                "transport_msgs": table.c.transport_msgs + stmt.excluded.transport_msgs,
                "peak_ccu": greatest(table.c.peak_ccu, stmt.excluded.peak_ccu),
            },
        )
        db.execute(stmt)
        db.commit()
