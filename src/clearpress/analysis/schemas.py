"""Pydantic models for compliance analysis input and output."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from clearpress.constants import (
    ISSUE_ID_TEXT_PREFIX,
    SCORE_MAX,
    SCORE_MIN,
    Category,
    ContentType,
    Language,
    ReportSource,
    Severity,
)


def make_issue_id(message: str, position: TextSpan | None) -> str:
    """Derive a stable issue id from its span and message prefix.

    Analyzing byte-identical content twice yields the same ids, which
    is what lets a dismissal outlive the batch it was made in.
    """
    key = (
        f"{position.start}-{position.end}" if position else "no-pos"
    )
    return f"{key}-{message[:ISSUE_ID_TEXT_PREFIX]}"


def normalize_severity(raw: Any) -> Severity:
    """Map a detector's severity label to a known Severity.

    Unknown or missing labels become warnings.
    """
    try:
        return Severity(str(raw).strip().lower())
    except ValueError:
        return Severity.WARNING


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (98.5 -> 99)."""
    # weighted sums carry float noise far below 1e-9
    return math.floor(round(value, 9) + 0.5)


def clamp_score(value: float) -> int:
    """Round and clamp a score into [0, 100]."""
    return max(SCORE_MIN, min(SCORE_MAX, round_half_up(value)))


class TextSpan(BaseModel):
    """Half-open ``[start, end)`` range of flat-text offsets."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> TextSpan:
        if self.end < self.start:
            raise ValueError("span end must not precede start")
        return self

    def overlaps(self, other: TextSpan) -> bool:
        return self.start < other.end and other.start < self.end

    def shifted(self, delta: int) -> TextSpan:
        return TextSpan(start=self.start + delta, end=self.end + delta)


class ComplianceIssue(BaseModel):
    """A flagged content span believed to violate a policy."""

    id: str = ""
    severity: Severity = Severity.WARNING
    message: str
    category: Category = Category.REGULATORY_CLAIMS
    position: TextSpan | None = None
    suggestion: str | None = None
    rule_reference: str | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, v: Any) -> Severity:
        return normalize_severity(v)

    @model_validator(mode="after")
    def _derive_id(self) -> ComplianceIssue:
        if not self.id:
            self.id = make_issue_id(self.message, self.position)
        return self


class CategoryResult(BaseModel):
    """Score and issues for one compliance category."""

    score: int = SCORE_MAX
    issues: list[ComplianceIssue] = Field(
        default_factory=lambda: list[ComplianceIssue]()
    )

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, v: Any) -> int:
        try:
            return clamp_score(float(v))
        except (TypeError, ValueError):
            return SCORE_MAX


CategoryMap = dict[Category, CategoryResult]


def neutral_categories(score: int = SCORE_MAX) -> CategoryMap:
    """One empty CategoryResult per category, all at ``score``."""
    return {c: CategoryResult(score=score) for c in Category}


class ComplianceReport(BaseModel):
    """Merged result of one analysis batch."""

    score: int
    categories: CategoryMap
    issues: list[ComplianceIssue] = Field(
        default_factory=lambda: list[ComplianceIssue]()
    )
    summary: str = ""
    source: ReportSource = ReportSource.RULES

    def issue(self, issue_id: str) -> ComplianceIssue | None:
        return next((i for i in self.issues if i.id == issue_id), None)


class ComplianceRequest(BaseModel):
    """Detector input.

    ``content`` and ``industry`` are optional at the model level so a
    missing value reaches the service and is reported as a validation
    error rather than a schema error.
    """

    content: str | None = None
    industry: str | None = None
    content_type: ContentType | None = None
    language: Language = "ja"
