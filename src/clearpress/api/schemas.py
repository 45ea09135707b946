"""Request/response schemas for the HTTP API."""

from typing import Any

from pydantic import BaseModel, Field

from clearpress.constants import ContentType, ErrorCode, Language


class ErrorDetail(BaseModel):
    code: ErrorCode
    message: str


class ErrorResponse(BaseModel):
    """Envelope for every failed API call."""

    success: bool = False
    error: ErrorDetail


class CheckComplianceRequest(BaseModel):
    """Request body for POST /api/compliance/check.

    ``content`` and ``industry_slug`` are optional here so that a
    missing value is answered with VALIDATION_ERROR by the service
    rather than a schema error.
    """

    content: str | None = None
    industry_slug: str | None = None
    content_type: ContentType | None = None
    language: Language = "ja"


class CheckComplianceResponse(BaseModel):
    """Successful compliance check."""

    success: bool = True
    score: int
    details: dict[str, Any] = Field(default_factory=dict)
    suggestions: list[dict[str, Any]] = Field(default_factory=list)
    summary: str = ""
    source: str = ""
