"""Hashing utilities for API keys and session tokens."""
import hashlib
import secrets
from typing import Optional

from registry.config import settings
from registry.constants import MIN_SESSION_TOKEN_BYTES


def hash_api_key(api_key: str, salt: Optional[str] = None) -> str:
    """
    Hash an API key using SHA-256.

    The digest is the lookup key for stored API keys. The raw key must be
    discarded by the caller once hashed.

    Args:
        api_key: The raw API key presented by a game server
        salt: Optional suffix mixed into the digest (defaults to settings.api_key_salt)

    Returns:
        64-character hex digest of the key
    """
    if salt is None:
        salt = settings.api_key_salt
    salted_key = f"{api_key}{salt}"
    return hashlib.sha256(salted_key.encode()).hexdigest()


def generate_session_token(num_bytes: Optional[int] = None) -> str:
    """
    Generate a new opaque session token.

    Args:
        num_bytes: Random bytes to draw (defaults to settings.session_token_bytes)

    Returns:
        Lowercase hex token, two characters per byte

    Raises:
        ValueError: If fewer than 128 bits of entropy are requested
    """
    if num_bytes is None:
        num_bytes = settings.session_token_bytes
    if num_bytes < MIN_SESSION_TOKEN_BYTES:
        raise ValueError(
            f"Session tokens need at least {MIN_SESSION_TOKEN_BYTES} random bytes"
        )
    return secrets.token_hex(num_bytes)
