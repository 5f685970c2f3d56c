"""Bearer token extraction."""
import re
from typing import Optional

from fastapi import Header

_BEARER_RE = re.compile(r"^Bearer\s+(\S+)$", re.IGNORECASE)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Pull the token out of an Authorization header value.

    Args:
        authorization: Raw header value, e.g. "Bearer 3f9a..."

    Returns:
        The token, or None if the header is missing or not a bearer credential
    """
    if not authorization:
        return None
    match = _BEARER_RE.match(authorization.strip())
    return match.group(1) if match else None


def bearer_token(
    authorization: Optional[str] = Header(None, description="Bearer session token"),
) -> Optional[str]:
    """
    Dependency returning the bearer token, or None.

    Missing tokens are not rejected here: each endpoint decides which
    reason to return.
    """
    return extract_bearer_token(authorization)
