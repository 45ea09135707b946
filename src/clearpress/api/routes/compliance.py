"""Compliance check API route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from clearpress.analysis.schemas import ComplianceRequest
from clearpress.api.dependencies import get_settings
from clearpress.api.schemas import (
    CheckComplianceRequest,
    CheckComplianceResponse,
    ErrorDetail,
    ErrorResponse,
)
from clearpress.config import Settings
from clearpress.constants import ERROR_TRUNCATION_CHARS, ErrorCode
from clearpress.resilience.errors import ComplianceValidationError
from clearpress.services.compliance_service import check_compliance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/compliance", tags=["compliance"])


def _error(status_code: int, code: ErrorCode, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json")
    )


@router.post("/check", response_model=CheckComplianceResponse)
async def check(
    body: CheckComplianceRequest,
    settings: Settings = Depends(get_settings),
) -> CheckComplianceResponse | JSONResponse:
    """Score content against the industry's compliance rules."""
    request = ComplianceRequest(
        content=body.content,
        industry=body.industry_slug,
        content_type=body.content_type,
        language=body.language,
    )
    try:
        report = await check_compliance(request, settings)
    except ComplianceValidationError as exc:
        return _error(400, ErrorCode.VALIDATION_ERROR, str(exc))
    except Exception as exc:
        logger.exception("event=compliance_check_failed")
        return _error(
            500,
            ErrorCode.INTERNAL_ERROR,
            str(exc)[:ERROR_TRUNCATION_CHARS] or "Internal error",
        )

    return CheckComplianceResponse(
        score=report.score,
        details={
            "categories": {
                c.value: r.model_dump(mode="json")
                for c, r in report.categories.items()
            }
        },
        suggestions=[i.model_dump(mode="json") for i in report.issues],
        summary=report.summary,
        source=report.source.value,
    )
