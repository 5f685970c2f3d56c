"""Serialization utilities for converting values to API responses."""
from datetime import datetime, timezone
from typing import Optional


def serialize_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize datetime to an ISO-8601 UTC string with millisecond precision.

    Naive values are taken to be UTC. The offset is written as "Z"
    (e.g. 2026-02-15T12:00:00.000Z).

    Args:
        value: Datetime value or None

    Returns:
        ISO format string or None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
