"""ARQ worker configuration.

Run with: arq registry.workers.config.WorkerSettings
"""
from arq.cron import cron

from registry.database import SessionLocal, engine
from registry.stores.sql import SqlCredentialStore
from registry.utils.logger import logger
from registry.workers.redis_config import redis_settings
from registry.workers.tasks import purge_expired_sessions, record_usage, touch_api_key


async def startup(ctx):
    """Give every job a store bound to the worker's engine."""
    ctx["store"] = SqlCredentialStore(SessionLocal)
    logger.info("Registry worker started")


async def shutdown(ctx):
    engine.dispose()
    logger.info("Registry worker stopped")


class WorkerSettings:
    """ARQ worker settings for the registry's background writes."""

    functions = [touch_api_key, record_usage, purge_expired_sessions]

    cron_jobs = [
        cron(purge_expired_sessions, minute={0, 15, 30, 45}, run_at_startup=False),
    ]

    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings

    # Jobs are single-row writes
    max_jobs = 50
    job_timeout = 30
    keep_result = 300
    # A lost touch or usage row is tolerable; don't hammer a struggling database
    retry_jobs = True
    max_tries = 3
