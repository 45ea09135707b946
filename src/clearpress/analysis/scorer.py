"""Merge category results into one weighted compliance report."""

from __future__ import annotations

from collections.abc import Mapping

from clearpress.analysis.schemas import (
    CategoryMap,
    CategoryResult,
    ComplianceIssue,
    ComplianceReport,
    clamp_score,
    round_half_up,
)
from clearpress.constants import (
    CATEGORY_WEIGHTS,
    SCORE_MAX,
    SEVERITY_ORDER,
    Category,
    ReportSource,
)


def calculate_weighted_score(
    categories: Mapping[Category, CategoryResult],
) -> int:
    """Return Σ weight · clamp(score, 0, 100), halves rounded up.

    A category missing from the map counts as a full pass.
    """
    total = 0.0
    for category, weight in CATEGORY_WEIGHTS.items():
        result = categories.get(category)
        score = result.score if result is not None else SCORE_MAX
        total += clamp_score(score) * weight
    return round_half_up(total)


def collect_issues(
    categories: Mapping[Category, CategoryResult],
) -> list[ComplianceIssue]:
    """Flatten issues across categories, most severe first.

    Categories are concatenated in declaration order and the sort is
    stable, so ties keep their detector order.
    """
    issues: list[ComplianceIssue] = []
    for category in Category:
        result = categories.get(category)
        if result is not None:
            issues.extend(result.issues)
    issues.sort(key=lambda i: SEVERITY_ORDER[i.severity])
    return issues


def blend_categories(
    ai: Mapping[Category, CategoryResult],
    rules: Mapping[Category, CategoryResult],
) -> CategoryMap:
    """Combine AI and rule-engine results category by category.

    The blended score is the lower of the two. Rule issues are added
    unless the AI already reported the same span in that category, so
    a deterministic prohibited-phrase hit survives an AI that missed it.
    """
    blended: CategoryMap = {}
    for category in Category:
        ai_result = ai.get(category) or CategoryResult()
        rule_result = rules.get(category) or CategoryResult()
        seen = {
            (i.position.start, i.position.end)
            for i in ai_result.issues
            if i.position is not None
        }
        extra = [
            i
            for i in rule_result.issues
            if i.position is None
            or (i.position.start, i.position.end) not in seen
        ]
        blended[category] = CategoryResult(
            score=min(ai_result.score, rule_result.score),
            issues=[*ai_result.issues, *extra],
        )
    return blended


def build_report(
    categories: Mapping[Category, CategoryResult],
    *,
    summary: str = "",
    source: ReportSource = ReportSource.RULES,
) -> ComplianceReport:
    """Assemble the final report from a category map."""
    full: CategoryMap = {
        c: categories.get(c) or CategoryResult() for c in Category
    }
    return ComplianceReport(
        score=calculate_weighted_score(full),
        categories=full,
        issues=collect_issues(full),
        summary=summary,
        source=source,
    )
