"""Logging configuration for the registry."""
import logging
import sys

from registry.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logger(name: str, environment: str) -> logging.Logger:
    """
    Attach a stdout handler to the named logger.

    DEBUG in development, INFO elsewhere. Calling it again for a logger
    that already has handlers returns the logger untouched.
    """
    named = logging.getLogger(name)
    if named.handlers:
        return named

    level = logging.DEBUG if environment == "development" else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    named.addHandler(handler)
    named.setLevel(level)
    # Uvicorn configures the root logger; don't print twice
    named.propagate = False
    return named


logger = configure_logger("registry", settings.environment)

__all__ = ["logger", "configure_logger"]
