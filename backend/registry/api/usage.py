"""Usage telemetry endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends, status

from registry.api.deps import get_usage_reporter
from registry.auth.bearer import bearer_token
from registry.schemas.auth import OkResponse
from registry.schemas.usage import UsageReportRequest
from registry.services.usage import UsageReporter

router = APIRouter(prefix="/v1/usage", tags=["usage"])


@router.post("/report", response_model=OkResponse, status_code=status.HTTP_202_ACCEPTED)
async def report_usage(
    request: Optional[UsageReportRequest] = None,
    token: Optional[str] = Depends(bearer_token),
    reporter: UsageReporter = Depends(get_usage_reporter),
) -> OkResponse:
    """
    Accept a usage report from a game server.

    The write is queued and its outcome is not reported: 202 means the
    session resolved, not that the counters were stored.

    Args:
        request: Counters since the last report; omitted fields count as 0
        token: Bearer session token
        reporter: Usage reporter

    Returns:
        Acknowledgement
    """
    request = request or UsageReportRequest()
    await reporter.report(
        token,
        api_calls=request.apiCalls,
        transport_msgs=request.transportMsgs,
        peak_ccu=request.peakCcu,
    )
    return OkResponse()
