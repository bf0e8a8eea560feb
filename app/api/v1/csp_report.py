"""Browser CSP violation reports."""

from __future__ import annotations

import json

import sentry_sdk
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.security.monitoring.security_metrics import CSP_VIOLATIONS_TOTAL
from app.security.rate_limit.service import enforce_rate_limit
from app.security.validation.schemas import CspReportBody
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["security"])

REPORT_KEY = "csp-report"


def _directive_label(directive: str | None) -> str:
    if not directive:
        return "unknown"
    return directive.split(" ", 1)[0][:64]


@router.post(
    "/csp-report",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(enforce_rate_limit("/api/csp-report"))],
)
async def receive_csp_report(request: Request) -> Response:
    # Reporting must never break: anything unreadable is logged and acknowledged.
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("csp_report_unreadable", error=str(e))
        sentry_sdk.capture_exception(e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if not isinstance(payload, dict) or not payload.get(REPORT_KEY):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid CSP report format"},
        )

    try:
        report = CspReportBody.model_validate(payload)
    except ValidationError as e:
        logger.warning("csp_report_invalid", error=str(e))
        sentry_sdk.capture_exception(e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    violation = report.csp_report
    fields = report.log_fields()
    logger.warning("csp_violation", **fields)
    CSP_VIOLATIONS_TOTAL.labels(
        directive=_directive_label(violation.violated_directive)
    ).inc()
    sentry_sdk.capture_message(
        "CSP Violation",
        level="warning",
        tags={
            "csp_violation": True,
            "directive": violation.violated_directive,
            "disposition": violation.disposition,
        },
        extras=violation.model_dump(by_alias=False),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/csp-report")
def csp_report_usage() -> dict:
    return {
        "message": "CSP violation reporting endpoint",
        "usage": "POST JSON with csp-report object",
    }
