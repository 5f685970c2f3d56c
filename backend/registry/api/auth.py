"""Session issuance and lifecycle endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends

from registry.api.deps import get_issuer, get_lifecycle
from registry.auth.bearer import bearer_token
from registry.schemas.auth import OkResponse, RefreshResponse, ValidateRequest, ValidateResponse
from registry.services.issuer import SessionIssuer
from registry.services.lifecycle import SessionLifecycleManager
from registry.utils.serialization import serialize_datetime

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/validate", response_model=ValidateResponse)
async def validate(
    request: ValidateRequest,
    issuer: SessionIssuer = Depends(get_issuer),
) -> ValidateResponse:
    """
    Exchange a game server's API key for a short-lived session token.

    Args:
        request: API key and platform context
        issuer: Session issuer

    Returns:
        Session token with tier, scopes and expiry
    """
    issued = await issuer.validate(
        raw_api_key=request.apiKey,
        universe_id=request.universeId,
        place_id=request.placeId,
        job_id=request.jobId,
    )
    return ValidateResponse(
        sessionToken=issued.session_token,
        tier=issued.tier,
        scopes=issued.scopes,
        ttl=issued.ttl,
        expiresAt=serialize_datetime(issued.expires_at),
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    token: Optional[str] = Depends(bearer_token),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
) -> RefreshResponse:
    """Extend a live session. The token is returned unchanged."""
    refreshed = await lifecycle.refresh(token)
    return RefreshResponse(
        sessionToken=refreshed.session_token,
        ttl=refreshed.ttl,
        expiresAt=serialize_datetime(refreshed.expires_at),
    )


@router.post("/revoke", response_model=OkResponse)
async def revoke(
    token: Optional[str] = Depends(bearer_token),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle),
) -> OkResponse:
    """Revoke a session. Succeeds for unknown tokens too."""
    await lifecycle.revoke(token)
    return OkResponse()
