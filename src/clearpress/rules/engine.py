"""Deterministic phrase scanner for regulated industries.

The rule engine needs no network and always runs. For short content
its result is the whole report; for longer content it is blended with
the AI result or stands in for it when the AI path degrades.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from clearpress.analysis.schemas import (
    CategoryMap,
    CategoryResult,
    ComplianceIssue,
    TextSpan,
    clamp_score,
    neutral_categories,
)
from clearpress.constants import Category, Severity
from clearpress.rules.schemas import PhraseRule, Rulebook

logger = logging.getLogger(__name__)


def find_occurrences(content: str, phrase: str) -> Iterator[TextSpan]:
    """Yield every non-overlapping ``[start, end)`` span of phrase."""
    if not phrase:
        return
    index = content.find(phrase)
    while index != -1:
        end = index + len(phrase)
        yield TextSpan(start=index, end=end)
        index = content.find(phrase, end)


def run_rules(
    content: str,
    rulebook: Rulebook | None,
    content_type: str | None = None,
) -> CategoryMap:
    """Scan content against an industry rulebook.

    ``rulebook=None`` means the industry is not regulated and every
    category passes with 100. ``content_type`` is accepted so callers
    can pass the request through unchanged; no rule depends on it.
    """
    categories = neutral_categories()
    if rulebook is None:
        return categories

    claims = categories[Category.REGULATORY_CLAIMS]
    for rule in rulebook.prohibited:
        for span in find_occurrences(content, rule.phrase):
            claims.issues.append(_phrase_issue(
                rule,
                span,
                Severity.ERROR,
                f"「{rule.phrase}」を削除または修正してください",
            ))
            claims.score -= rulebook.penalties.error

    for rule in rulebook.caution:
        span = next(find_occurrences(content, rule.phrase), None)
        if span is None:
            continue
        claims.issues.append(_phrase_issue(
            rule,
            span,
            Severity.WARNING,
            "具体的なデータや条件を追加してください",
        ))
        claims.score -= rulebook.penalties.warning

    safety = rulebook.safety
    if (
        safety is not None
        and len(content) > rulebook.safety_check_min_length
        and not any(term in content for term in safety.terms)
    ):
        safety_info = categories[Category.SAFETY_INFO]
        safety_info.issues.append(ComplianceIssue(
            severity=Severity.WARNING,
            category=Category.SAFETY_INFO,
            message=safety.message,
            suggestion=safety.suggestion or None,
            rule_reference=safety.rule or None,
        ))
        safety_info.score -= rulebook.penalties.safety

    result = {
        category: CategoryResult(
            score=clamp_score(r.score), issues=r.issues
        )
        for category, r in categories.items()
    }
    logger.debug(
        "event=rules_scanned industry=%s content_type=%s issues=%d",
        rulebook.industry,
        content_type,
        sum(len(r.issues) for r in result.values()),
    )
    return result


def _phrase_issue(
    rule: PhraseRule,
    span: TextSpan,
    severity: Severity,
    suggestion: str,
) -> ComplianceIssue:
    return ComplianceIssue(
        severity=severity,
        category=Category.REGULATORY_CLAIMS,
        message=rule.message,
        position=span,
        suggestion=suggestion,
        rule_reference=rule.rule or None,
    )
