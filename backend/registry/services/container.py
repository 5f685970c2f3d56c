"""Service wiring for the API process."""
from dataclasses import dataclass
from typing import Optional

from registry.config import Settings
from registry.services.issuer import SessionIssuer
from registry.services.lifecycle import SessionLifecycleManager
from registry.services.resolver import SessionResolver
from registry.services.usage import UsageReporter
from registry.stores.interfaces import CredentialStore, SessionCache
from registry.utils.logger import logger
from registry.workers.dispatch import ArqDispatcher, InlineDispatcher, JobDispatcher


@dataclass
class Services:
    """Everything the routers need, attached to app.state.services."""
    store: CredentialStore
    cache: SessionCache
    dispatcher: JobDispatcher
    issuer: SessionIssuer
    resolver: SessionResolver
    lifecycle: SessionLifecycleManager
    usage: UsageReporter

    async def close(self) -> None:
        """Flush pending background jobs and release connections."""
        await self.dispatcher.close()
        close_cache = getattr(self.cache, "close", None)
        if close_cache is not None:
            await close_cache()


def build_services(
    settings: Settings,
    store: Optional[CredentialStore] = None,
    cache: Optional[SessionCache] = None,
    dispatcher: Optional[JobDispatcher] = None,
) -> Services:
    """
    Build the service graph.

    Anything not passed in is built from settings: the SQL store, the Redis
    cache and the dispatcher selected by job_backend. Tests pass in-memory
    stores instead.

    Args:
        settings: Application settings
        store: Credential store override
        cache: Session cache override
        dispatcher: Job dispatcher override

    Returns:
        Wired services
    """
    if store is None:
        # Imported lazily so in-memory wiring never touches the engine
        from registry.database import SessionLocal
        from registry.stores.sql import SqlCredentialStore

        store = SqlCredentialStore(SessionLocal)

    if cache is None:
        from registry.stores.redis_cache import RedisSessionCache

        cache = RedisSessionCache.from_url(settings.redis_url, settings.cache_timeout_seconds)

    if dispatcher is None:
        if settings.job_backend == "arq":
            from registry.workers.redis_config import parse_redis_url

            dispatcher = ArqDispatcher(
                parse_redis_url(settings.redis_url), settings.store_timeout_seconds
            )
        else:
            dispatcher = InlineDispatcher(store, settings.store_timeout_seconds)
        logger.info(f"Background jobs run via {settings.job_backend} dispatcher")

    resolver = SessionResolver(
        store=store,
        cache=cache,
        store_timeout=settings.store_timeout_seconds,
        cache_timeout=settings.cache_timeout_seconds,
        repair_cache=settings.repair_session_cache,
    )
    return Services(
        store=store,
        cache=cache,
        dispatcher=dispatcher,
        issuer=SessionIssuer(
            store=store,
            cache=cache,
            dispatcher=dispatcher,
            session_ttl=settings.session_ttl_seconds,
            token_bytes=settings.session_token_bytes,
            store_timeout=settings.store_timeout_seconds,
            cache_timeout=settings.cache_timeout_seconds,
            api_key_salt=settings.api_key_salt,
        ),
        resolver=resolver,
        lifecycle=SessionLifecycleManager(
            store=store,
            cache=cache,
            session_ttl=settings.session_ttl_seconds,
            store_timeout=settings.store_timeout_seconds,
            cache_timeout=settings.cache_timeout_seconds,
        ),
        usage=UsageReporter(resolver=resolver, dispatcher=dispatcher),
    )
