"""Compliance check orchestration: rules always, AI when worthwhile."""

from __future__ import annotations

import logging
import time

from clearpress.analysis.llm.analyzer import analyze_with_ai
from clearpress.analysis.schemas import ComplianceReport, ComplianceRequest
from clearpress.analysis.scorer import blend_categories, build_report
from clearpress.config import Settings
from clearpress.constants import SHORT_CONTENT_THRESHOLD, ReportSource
from clearpress.resilience.errors import ComplianceValidationError
from clearpress.rules.engine import run_rules
from clearpress.rules.loader import get_rulebook
from clearpress.rules.schemas import Rulebook

logger = logging.getLogger(__name__)


def validate_request(request: ComplianceRequest) -> tuple[str, str]:
    """Return (content, industry) or raise ComplianceValidationError."""
    if not request.content:
        raise ComplianceValidationError("content")
    if not request.industry or not request.industry.strip():
        raise ComplianceValidationError("industry")
    return request.content, request.industry.strip()


def resolve_rulebook(
    industry: str, settings: Settings
) -> Rulebook | None:
    """Load the industry rulebook, rejecting malformed industry keys."""
    try:
        return get_rulebook(industry, rulebooks_dir=settings.rulebook_dir)
    except ValueError as exc:
        raise ComplianceValidationError("industry", str(exc)) from exc


def check_rules_only(
    request: ComplianceRequest,
    settings: Settings | None = None,
) -> ComplianceReport:
    """Synchronous rule-engine check; never touches the network."""
    if settings is None:
        settings = Settings()
    content, industry = validate_request(request)
    rulebook = resolve_rulebook(industry, settings)
    categories = run_rules(
        content, rulebook, content_type=request.content_type
    )
    return build_report(categories, source=ReportSource.RULES)


async def check_compliance(
    request: ComplianceRequest,
    settings: Settings | None = None,
) -> ComplianceReport:
    """Run a full compliance check.

    1. Validate (raises before any work is done).
    2. Rule engine, always.
    3. Content shorter than the threshold, or AI disabled: rules only.
    4. Otherwise ask the model; a degraded AI call falls back to the
       rule result, a successful one is blended with it.
    """
    if settings is None:
        settings = Settings()
    content, industry = validate_request(request)
    rulebook = resolve_rulebook(industry, settings)
    start = time.monotonic()

    rule_categories = run_rules(
        content, rulebook, content_type=request.content_type
    )

    if len(content) < SHORT_CONTENT_THRESHOLD or not settings.ai_enabled:
        return build_report(rule_categories, source=ReportSource.RULES)

    ai = await analyze_with_ai(
        content,
        industry,
        rulebook=rulebook,
        content_type=request.content_type,
        language=request.language,
        settings=settings,
    )
    duration_ms = (time.monotonic() - start) * 1000

    if ai is None:
        logger.warning(
            "event=analysis_degraded industry=%s fallback=rules "
            "duration_ms=%.0f",
            industry,
            duration_ms,
        )
        return build_report(rule_categories, source=ReportSource.RULES)

    report = build_report(
        blend_categories(ai.categories, rule_categories),
        summary=ai.summary,
        source=ReportSource.BLENDED,
    )
    logger.info(
        "event=analysis_complete industry=%s model=%s parsed=%s "
        "score=%d issues=%d duration_ms=%.0f",
        industry,
        ai.model,
        ai.parsed,
        report.score,
        len(report.issues),
        duration_ms,
    )
    return report
