"""Schemas for usage telemetry."""
from pydantic import BaseModel, Field


class UsageReportRequest(BaseModel):
    """Request schema for /v1/usage/report endpoint. Omitted counters count as 0."""
    apiCalls: int = Field(0, ge=0, description="API calls since the last report")
    transportMsgs: int = Field(0, ge=0, description="Transport messages since the last report")
    peakCcu: int = Field(0, ge=0, description="Peak concurrent users observed")
