"""Redis connection settings for the ARQ queue."""
from urllib.parse import urlparse

from arq.connections import RedisSettings

from registry.config import settings


def parse_redis_url(url: str) -> RedisSettings:
    """
    Translate a redis:// or rediss:// URL into ARQ RedisSettings.

    The same URL backs the session cache, so the API process and the
    worker always agree on which Redis they talk to.

    Args:
        url: Redis URL, optionally with credentials and a database index

    Returns:
        RedisSettings for arq.create_pool and WorkerSettings
    """
    parsed = urlparse(url)
    database = 0
    if parsed.path and parsed.path != "/":
        database = int(parsed.path.lstrip("/"))

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        username=parsed.username or None,
        password=parsed.password,
        database=database,
        ssl=parsed.scheme == "rediss",
    )


redis_settings = parse_redis_url(settings.redis_url)
