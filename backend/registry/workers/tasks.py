"""ARQ background tasks for best-effort writes and housekeeping."""
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict

from registry.config import settings
from registry.stores.interfaces import CredentialStore
from registry.utils.clock import utc_now
from registry.utils.logger import logger


def _store(ctx: Dict[str, Any]) -> CredentialStore:
    return ctx["store"]


async def touch_api_key(ctx: Dict[str, Any], api_key_id: uuid.UUID) -> Dict[str, Any]:
    """
    Record that an API key was just used.

    Args:
        ctx: ARQ context
        api_key_id: The API key to touch

    Returns:
        Dict with success status
    """
    await _store(ctx).touch_api_key(api_key_id)
    return {"success": True, "api_key_id": str(api_key_id)}


async def record_usage(
    ctx: Dict[str, Any],
    game_id: uuid.UUID,
    period_start: datetime,
    api_calls: int,
    transport_msgs: int,
    peak_ccu: int,
) -> Dict[str, Any]:
    """
    Add a usage report to the game's hourly bucket.

    The bucket is chosen at report time by the API process, so a job that
    runs late still lands in the hour the report was made.

    Args:
        ctx: ARQ context
        game_id: The game the reporting session belongs to
        period_start: Start of the hourly bucket (UTC)
        api_calls: API calls to add
        transport_msgs: Transport messages to add
        peak_ccu: Peak concurrent users candidate

    Returns:
        Dict with success status
    """
    await _store(ctx).record_usage(
        game_id=game_id,
        period_start=period_start,
        api_calls=api_calls,
        transport_msgs=transport_msgs,
        peak_ccu=peak_ccu,
    )
    return {"success": True, "game_id": str(game_id)}


async def purge_expired_sessions(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Delete session rows that expired more than the retention window ago.

    Expired rows are already ignored by lookups; this only keeps the
    sessions table from growing without bound.

    Returns:
        Dict with count of sessions deleted
    """
    cutoff = utc_now() - timedelta(minutes=settings.expired_session_retention_minutes)
    try:
        deleted = await _store(ctx).purge_expired_sessions(cutoff)
    except Exception as e:
        logger.error(f"Failed to purge expired sessions: {e}", exc_info=True)
        return {"success": False, "error": str(e)}

    if deleted:
        logger.info(f"Purged {deleted} expired sessions")
    return {"success": True, "sessions_deleted": deleted}
