"""Usage telemetry intake."""
from datetime import datetime
from typing import Callable, Optional

from registry.constants import ErrorReason, JobName
from registry.services.resolver import SessionResolver
from registry.utils.clock import hour_bucket, utc_now
from registry.utils.exceptions import AuthenticationError
from registry.workers.dispatch import JobDispatcher


class UsageReporter:
    """Attributes usage to the reporting session's game, fire-and-forget."""

    def __init__(
        self,
        resolver: SessionResolver,
        dispatcher: JobDispatcher,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.clock = clock

    async def report(
        self,
        token: Optional[str],
        api_calls: int = 0,
        transport_msgs: int = 0,
        peak_ccu: int = 0,
    ) -> None:
        """
        Accept a usage report.

        Only session resolution is awaited. The upsert into the current
        hour's bucket is dispatched and its outcome is never reported back.

        Raises:
            AuthenticationError: missing_token, session_not_found
        """
        if not token:
            raise AuthenticationError(ErrorReason.MISSING_TOKEN)

        identity = await self.resolver.resolve(token)
        if identity is None:
            raise AuthenticationError(ErrorReason.SESSION_NOT_FOUND)

        self.dispatcher.dispatch(
            JobName.RECORD_USAGE,
            game_id=identity.game_id,
            period_start=hour_bucket(self.clock()),
            api_calls=api_calls,
            transport_msgs=transport_msgs,
            peak_ccu=peak_ccu,
        )
