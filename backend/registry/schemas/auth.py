"""Schemas for session issuance and lifecycle."""
from pydantic import BaseModel, Field
from typing import List, Optional, Union


class ValidateRequest(BaseModel):
    """Request schema for /v1/auth/validate endpoint."""
    apiKey: Optional[str] = Field(None, description="Raw API key issued to the game")
    universeId: Optional[Union[int, str]] = Field(None, description="Platform universe ID")
    placeId: Optional[int] = Field(None, description="Platform place ID")
    jobId: Optional[str] = Field(None, description="Platform server instance ID")


class ValidateResponse(BaseModel):
    """Response schema for /v1/auth/validate endpoint."""
    sessionToken: str
    tier: str
    scopes: List[str]
    ttl: int
    expiresAt: str


class RefreshResponse(BaseModel):
    """Response schema for /v1/auth/refresh endpoint."""
    sessionToken: str
    ttl: int
    expiresAt: str


class OkResponse(BaseModel):
    """Plain acknowledgement."""
    ok: bool = True
