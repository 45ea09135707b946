"""AI-assisted compliance analysis: one prompt, one defensive parse."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, cast

from circuitbreaker import CircuitBreakerError

from clearpress.analysis.llm._llm_call import guarded_llm_call
from clearpress.analysis.schemas import (
    CategoryMap,
    CategoryResult,
    ComplianceIssue,
    TextSpan,
    neutral_categories,
)
from clearpress.config import Settings
from clearpress.constants import NEUTRAL_FALLBACK_SCORE, Category
from clearpress.prompts import build_compliance_prompt
from clearpress.resilience.errors import classify_error
from clearpress.rules.schemas import Rulebook

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

UNPARSABLE_SUMMARY = "Unable to analyze content"


@dataclass(frozen=True)
class AIAnalysis:
    """Parsed model reply."""

    categories: CategoryMap
    summary: str
    model: str = ""
    parsed: bool = True


async def analyze_with_ai(
    content: str,
    industry: str,
    *,
    rulebook: Rulebook | None = None,
    content_type: str | None = None,
    language: str = "ja",
    settings: Settings | None = None,
) -> AIAnalysis | None:
    """Ask the model chain for a category breakdown.

    Returns ``None`` when no model could be reached (missing key, open
    circuit, transport or status failure); the caller then relies on the
    rule engine alone. A reply that cannot be parsed still yields an
    ``AIAnalysis`` with the neutral default scores.
    """
    if settings is None:
        settings = Settings()

    prompt = build_compliance_prompt(
        content,
        industry,
        prohibited_phrases=rulebook.prohibited_phrases if rulebook else (),
        content_type=content_type,
        language=language,
    )

    for model in settings.litellm_model_chain:
        api_key = settings.api_key_for(model)
        if not api_key:
            logger.warning(
                "event=ai_skipped reason=no_api_key model=%s", model
            )
            continue
        try:
            result = await guarded_llm_call(
                model,
                prompt,
                settings.llm_timeout_seconds,
                api_key=api_key,
                max_tokens=settings.llm_max_output_tokens,
            )
        except CircuitBreakerError:
            logger.warning(
                "event=circuit_open model=%s component=compliance", model
            )
            continue
        except Exception as exc:
            logger.warning(
                "event=ai_call_failed model=%s error_class=%s",
                model,
                classify_error(exc).value,
                exc_info=True,
            )
            continue

        categories, summary, parsed = parse_compliance_response(
            result.content, len(content)
        )
        return AIAnalysis(
            categories=categories,
            summary=summary,
            model=result.model,
            parsed=parsed,
        )

    return None


def parse_compliance_response(
    response: str, content_length: int | None = None
) -> tuple[CategoryMap, str, bool]:
    """Parse a model reply into (categories, summary, parsed).

    Never raises. Strips a fenced code block, takes the outermost
    ``{...}`` region and decodes it. On failure every category gets the
    neutral fallback score and ``parsed`` is False.
    """
    json_str = response
    fence = _FENCE_RE.search(response)
    if fence:
        json_str = fence.group(1).strip()
    obj = _OBJECT_RE.search(json_str)
    if obj:
        json_str = obj.group(0)

    try:
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError("top-level JSON value is not an object")
    except ValueError as exc:
        logger.warning(
            "event=ai_parse_failed error_class=%s response_len=%d",
            classify_error(exc).value,
            len(response),
        )
        return (
            neutral_categories(NEUTRAL_FALLBACK_SCORE),
            UNPARSABLE_SUMMARY,
            False,
        )

    parsed = cast(dict[str, Any], data)
    raw_categories: Any = parsed.get("categories")
    if not isinstance(raw_categories, dict):
        raw_categories = {}
    typed_categories = cast(dict[str, Any], raw_categories)

    categories = neutral_categories()
    for category in Category:
        raw = typed_categories.get(category.value)
        if isinstance(raw, dict):
            categories[category] = _extract_category(
                category, cast(dict[str, Any], raw), content_length
            )

    summary = parsed.get("summary")
    return categories, str(summary) if summary else "", True


def _extract_category(
    category: Category,
    raw: dict[str, Any],
    content_length: int | None,
) -> CategoryResult:
    issues_raw: Any = raw.get("issues", [])
    issues: list[ComplianceIssue] = []
    if isinstance(issues_raw, list):
        for item in cast(list[Any], issues_raw):
            if not isinstance(item, dict):
                continue
            issue = _extract_issue(
                category, cast(dict[str, Any], item), content_length
            )
            if issue is not None:
                issues.append(issue)
    return CategoryResult(score=raw.get("score", 100), issues=issues)


def _extract_issue(
    category: Category,
    item: dict[str, Any],
    content_length: int | None,
) -> ComplianceIssue | None:
    message = str(item.get("message") or "").strip()
    if not message:
        return None
    suggestion = item.get("suggestion")
    rule_reference = item.get("rule_reference")
    return ComplianceIssue(
        severity=item.get("type") or item.get("severity"),
        category=category,
        message=message,
        position=_extract_position(item.get("position"), content_length),
        suggestion=str(suggestion) if suggestion else None,
        rule_reference=str(rule_reference) if rule_reference else None,
    )


def _extract_position(
    raw: Any, content_length: int | None
) -> TextSpan | None:
    """Keep only well-formed, in-bounds, non-empty spans."""
    if not isinstance(raw, dict):
        return None
    pos = cast(dict[str, Any], raw)
    start, end = pos.get("start"), pos.get("end")
    if (
        not isinstance(start, int)
        or not isinstance(end, int)
        or isinstance(start, bool)
        or isinstance(end, bool)
    ):
        return None
    if start < 0 or end <= start:
        return None
    if content_length is not None and end > content_length:
        return None
    return TextSpan(start=start, end=end)
