"""Pydantic schemas for request/response validation."""
from registry.schemas.auth import ValidateRequest, ValidateResponse, RefreshResponse, OkResponse
from registry.schemas.usage import UsageReportRequest
from registry.schemas.session import SessionIdentity

__all__ = [
    "ValidateRequest",
    "ValidateResponse",
    "RefreshResponse",
    "OkResponse",
    "UsageReportRequest",
    "SessionIdentity",
]
