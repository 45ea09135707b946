"""Consolidated LLM prompts for compliance analysis.

The templates embed the five-category rubric with its weights and a
strict JSON-only output contract. Pharmaceutical content gets the
regulation-specific rubric; every other industry gets the general one.
"""

from __future__ import annotations

from collections.abc import Sequence

from clearpress.constants import (
    CATEGORY_WEIGHTS,
    PHARMACEUTICAL,
    Category,
    ContentType,
)

# ── Output contract (shared) ──────────────────────────────────────

_OUTPUT_FORMAT = """\
OUTPUT FORMAT (JSON only, no markdown, no commentary):
{
  "categories": {
    "regulatory_claims": {
      "score": 0-100,
      "issues": [{ "type": "...", "message": "...", "position": { "start": 0, "end": 0 }, "suggestion": "...", "rule_reference": "..." }]
    },
    "safety_info": { "score": 0-100, "issues": [...] },
    "fair_balance": { "score": 0-100, "issues": [...] },
    "substantiation": { "score": 0-100, "issues": [...] },
    "formatting": { "score": 0-100, "issues": [...] }
  },
  "summary": "Brief overall assessment"
}"""

_ISSUE_FIELDS = """\
For each issue found, provide:
- type: "error" (must fix) | "warning" (should fix) | "suggestion" (consider)
- message: Clear description of the issue
- position: Character offsets { "start": number, "end": number } into the \
content exactly as given, end exclusive, if identifiable
- suggestion: Replacement text or how to fix the issue
- rule_reference: Specific regulation violated (e.g., "薬機法第66条")"""

# ── Pharmaceutical rubric ─────────────────────────────────────────

PHARMA_COMPLIANCE_PROMPT = """\
You are a pharmaceutical communications compliance expert specializing in \
Japanese regulations.

APPLICABLE REGULATIONS:
1. 薬機法 (Pharmaceutical and Medical Devices Act) - Articles 66-68 on advertising
2. PMDA広告ガイドライン (PMDA Advertising Guidelines)
3. JPMA行動規範 (JPMA Code of Practice)
4. 医療用医薬品製品情報概要 (Product Information Summary Guidelines)
{context}
CONTENT TO REVIEW:
{content}

Analyze the content for compliance issues across these 5 categories:

1. REGULATORY CLAIMS (規制上の主張) - Weight: {w_regulatory_claims}%
   - Unsubstantiated claims
   - Exaggerated benefits
   - Off-label promotion
   - Superiority claims without data

2. SAFETY INFORMATION (安全性情報) - Weight: {w_safety_info}%
   - Required warnings present
   - Contraindications mentioned
   - Adverse events disclosed
   - ISI completeness

3. FAIR BALANCE (公平なバランス) - Weight: {w_fair_balance}%
   - Benefits vs risks balanced
   - No misleading omissions
   - Comparative claims substantiated

4. SUBSTANTIATION (根拠) - Weight: {w_substantiation}%
   - Claims supported by evidence
   - References accurate
   - Data presented fairly

5. FORMATTING (形式) - Weight: {w_formatting}%
   - Required elements present
   - Disclosures properly displayed
   - Regulatory requirements met

PROHIBITED PHRASES (must be flagged as errors):
{prohibited}

{issue_fields}

Write every message, suggestion and the summary in {language_name}.

{output_format}"""

# ── General rubric ────────────────────────────────────────────────

GENERAL_COMPLIANCE_PROMPT = """\
You are a PR communications compliance reviewer for the {industry} industry.
{context}
CONTENT TO REVIEW:
{content}

Check for general compliance issues:

1. REGULATORY CLAIMS - Weight: {w_regulatory_claims}% - Are claims \
substantiated and not misleading?
2. SAFETY INFORMATION - Weight: {w_safety_info}% - Are any required \
warnings included?
3. FAIR BALANCE - Weight: {w_fair_balance}% - Is information presented fairly?
4. SUBSTANTIATION - Weight: {w_substantiation}% - Are claims supported by \
evidence?
5. FORMATTING - Weight: {w_formatting}% - Is the content properly structured?

PROHIBITED PHRASES (must be flagged as errors):
{prohibited}

{issue_fields}

Write every message, suggestion and the summary in {language_name}.

{output_format}"""

LANGUAGE_NAMES: dict[str, str] = {
    "ja": "Japanese",
    "en": "English",
}

CONTENT_TYPE_LABELS: dict[str, str] = {
    ContentType.PRESS_RELEASE: "press release",
    ContentType.BLOG_POST: "blog post",
    ContentType.SOCIAL_MEDIA: "social media post",
    ContentType.INTERNAL_MEMO: "internal memo",
    ContentType.FAQ: "FAQ",
    ContentType.EXECUTIVE_STATEMENT: "executive statement",
}


def build_compliance_prompt(
    content: str,
    industry: str,
    prohibited_phrases: Sequence[str] = (),
    content_type: str | None = None,
    language: str = "ja",
) -> str:
    """Assemble the single prompt string sent to the model."""
    template = (
        PHARMA_COMPLIANCE_PROMPT
        if industry == PHARMACEUTICAL
        else GENERAL_COMPLIANCE_PROMPT
    )
    prohibited = (
        "\n".join(f'- "{p}"' for p in prohibited_phrases)
        if prohibited_phrases
        else "- (none configured for this industry)"
    )
    context = ""
    if content_type:
        label = CONTENT_TYPE_LABELS.get(content_type, content_type)
        context = f"\nCONTENT TYPE: {label}\n"

    weights = {
        f"w_{c.value}": round(CATEGORY_WEIGHTS[c] * 100) for c in Category
    }
    return template.format(
        industry=industry,
        context=context,
        content=content,
        prohibited=prohibited,
        issue_fields=_ISSUE_FIELDS,
        language_name=LANGUAGE_NAMES.get(language, "Japanese"),
        output_format=_OUTPUT_FORMAT,
        **weights,
    )
