"""Fire-and-forget dispatch for best-effort side effects.

Request handlers call dispatch() and return immediately. The job runs as a
detached asyncio task; a failure or timeout is logged and never reaches
the caller.

InlineDispatcher runs the job against the credential store in-process.
ArqDispatcher enqueues it for the ARQ worker (registry.workers.tasks).
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from registry.constants import JobName
from registry.stores.interfaces import CredentialStore
from registry.utils.logger import logger


class JobDispatcher(ABC):
    """Runs named jobs in the background without blocking the caller."""

    def __init__(self, timeout_seconds: float):
        self._timeout = timeout_seconds
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of jobs still running."""
        return sum(1 for task in self._pending if not task.done())

    def dispatch(self, job_name: str, **kwargs: Any) -> None:
        """Start a job and return without waiting for it. Never raises."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(f"Cannot dispatch {job_name}: no running event loop")
            return

        task = loop.create_task(self._execute(job_name, kwargs))
        # Hold a reference so the task is not garbage collected mid-flight
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _execute(self, job_name: str, kwargs: Dict[str, Any]) -> None:
        try:
            await asyncio.wait_for(self._run(job_name, **kwargs), self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Background job {job_name} timed out after {self._timeout}s")
        except Exception as e:
            logger.error(f"Background job {job_name} failed: {e}", exc_info=True)

    @abstractmethod
    async def _run(self, job_name: str, **kwargs: Any) -> None:
        ...

    async def drain(self) -> None:
        """Wait for every dispatched job to finish."""
        while True:
            running = [task for task in self._pending if not task.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    async def close(self) -> None:
        await self.drain()


class InlineDispatcher(JobDispatcher):
    """Runs jobs in-process against the credential store."""

    def __init__(self, store: CredentialStore, timeout_seconds: float):
        super().__init__(timeout_seconds)
        self._jobs: Dict[str, Callable[..., Awaitable[Any]]] = {
            JobName.TOUCH_API_KEY: store.touch_api_key,
            JobName.RECORD_USAGE: store.record_usage,
        }

    async def _run(self, job_name: str, **kwargs: Any) -> None:
        job = self._jobs.get(job_name)
        if job is None:
            raise ValueError(f"Unknown job: {job_name}")
        await job(**kwargs)


class ArqDispatcher(JobDispatcher):
    """Enqueues jobs for the ARQ worker. The pool is created on first use."""

    def __init__(self, redis_settings: RedisSettings, timeout_seconds: float):
        super().__init__(timeout_seconds)
        self._redis_settings = redis_settings
        self._pool: Optional[ArqRedis] = None
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self) -> ArqRedis:
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await create_pool(self._redis_settings)
            return self._pool

    async def _run(self, job_name: str, **kwargs: Any) -> None:
        pool = await self._get_pool()
        job = await pool.enqueue_job(job_name, **kwargs)
        if job is None:
            logger.warning(f"Job {job_name} was not enqueued (duplicate job id)")

    async def close(self) -> None:
        await super().close()
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
