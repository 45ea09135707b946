"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON payloads,
mark attributes, log lines) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

# ── String Enums ─────────────────────────────────────────


class Severity(StrEnum):
    """Severity of a compliance issue, most severe first."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class Category(StrEnum):
    """The five weighted compliance assessment dimensions.

    Declaration order is the stable order used when flattening
    category results into a single issue list.
    """

    REGULATORY_CLAIMS = "regulatory_claims"
    SAFETY_INFO = "safety_info"
    FAIR_BALANCE = "fair_balance"
    SUBSTANTIATION = "substantiation"
    FORMATTING = "formatting"


class ContentType(StrEnum):
    """Kinds of PR content the detectors are asked to review."""

    PRESS_RELEASE = "press_release"
    BLOG_POST = "blog_post"
    SOCIAL_MEDIA = "social_media"
    INTERNAL_MEMO = "internal_memo"
    FAQ = "faq"
    EXECUTIVE_STATEMENT = "executive_statement"


class ReportSource(StrEnum):
    """Which detector(s) produced a compliance report."""

    RULES = "rules"
    BLENDED = "blended"


class ErrorCode(StrEnum):
    """Error codes returned by the HTTP API envelope."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


Language = Literal["ja", "en"]

PHARMACEUTICAL = "pharmaceutical"

# ── Scoring ──────────────────────────────────────────────

CATEGORY_WEIGHTS: dict[Category, float] = {
    Category.REGULATORY_CLAIMS: 0.30,
    Category.SAFETY_INFO: 0.25,
    Category.FAIR_BALANCE: 0.20,
    Category.SUBSTANTIATION: 0.15,
    Category.FORMATTING: 0.10,
}

SEVERITY_ORDER: dict[Severity, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.SUGGESTION: 2,
}

SCORE_MIN = 0
SCORE_MAX = 100
NEUTRAL_FALLBACK_SCORE = 80  # AI reply present but unparsable

# ── Rule Engine Defaults ─────────────────────────────────

SHORT_CONTENT_THRESHOLD = 100  # below this, rules only
SAFETY_CHECK_MIN_LENGTH = 200
ERROR_PENALTY = 15
WARNING_PENALTY = 5
SAFETY_PENALTY = 20

# ── Issue Identity ───────────────────────────────────────

ISSUE_ID_TEXT_PREFIX = 20

# ── Circuit Breaker Configuration ────────────────────────

CB_LLM_FAILURE_THRESHOLD = 5
CB_LLM_RECOVERY_TIMEOUT = 30

# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 2
RETRY_MAX_WAIT = 30

# ── LLM Output ───────────────────────────────────────────

LLM_MAX_OUTPUT_TOKENS = 2048

# ── Editor Annotations ───────────────────────────────────

COMPLIANCE_MARK = "compliance_issue"
ISSUE_ID_ATTRIBUTE = "data-issue-id"
COMPLIANCE_ATTRIBUTE = "data-compliance-issue"
FLASH_CLASS = "compliance-mark-flash"
FLASH_DURATION_SECONDS = 1.5

MARK_CLASSES: dict[Severity, str] = {
    Severity.ERROR: "compliance-mark-error",
    Severity.WARNING: "compliance-mark-warning",
    Severity.SUGGESTION: "compliance-mark-suggestion",
}

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
