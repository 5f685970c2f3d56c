"""Time helpers. All timestamps are timezone-aware UTC."""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo), convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hour_bucket(value: datetime) -> datetime:
    """Truncate a timestamp to the start of its UTC hour."""
    return ensure_utc(value).replace(minute=0, second=0, microsecond=0)
