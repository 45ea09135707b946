"""Tests for the deterministic phrase scanner."""

from __future__ import annotations

from clearpress.analysis.scorer import build_report
from clearpress.constants import Category, Severity
from clearpress.rules.engine import find_occurrences, run_rules
from clearpress.rules.loader import load_rulebook
from clearpress.rules.schemas import (
    Penalties,
    PhraseRule,
    Rulebook,
    SafetyRequirement,
)


def _rulebook(**overrides: object) -> Rulebook:
    base: dict[str, object] = {
        "industry": "testing",
        "title": "Testing",
        "penalties": Penalties(error=15, warning=5, safety=20),
        "safety_check_min_length": 200,
        "prohibited": (PhraseRule("cure", "No cure claims", "R1"),),
        "caution": (PhraseRule("effective", "Back it up", "R2"),),
        "safety": SafetyRequirement(
            terms=("warning", "side effect"),
            message="Missing safety information",
            suggestion="Add safety information",
            rule="R3",
        ),
    }
    base.update(overrides)
    return Rulebook(**base)  # type: ignore[arg-type]


class TestFindOccurrences:
    def test_every_occurrence_is_reported(self) -> None:
        spans = list(find_occurrences("cure, cure and cure", "cure"))
        assert [(s.start, s.end) for s in spans] == [
            (0, 4),
            (6, 10),
            (15, 19),
        ]

    def test_occurrences_do_not_overlap(self) -> None:
        spans = list(find_occurrences("aaaa", "aa"))
        assert [(s.start, s.end) for s in spans] == [(0, 2), (2, 4)]

    def test_empty_phrase_yields_nothing(self) -> None:
        assert list(find_occurrences("anything", "")) == []


class TestRunRules:
    def test_unregulated_industry_is_neutral(self) -> None:
        categories = run_rules("we cure everything", None)
        assert set(categories) == set(Category)
        for result in categories.values():
            assert result.score == 100
            assert result.issues == []

    def test_each_prohibited_occurrence_penalized(self) -> None:
        categories = run_rules("cure and cure", _rulebook())
        claims = categories[Category.REGULATORY_CLAIMS]
        assert claims.score == 70
        assert len(claims.issues) == 2
        first = claims.issues[0]
        assert first.severity == Severity.ERROR
        assert first.position is not None
        assert (first.position.start, first.position.end) == (0, 4)
        assert first.rule_reference == "R1"
        assert first.suggestion is not None
        assert "cure" in first.suggestion

    def test_caution_phrase_flagged_once(self) -> None:
        categories = run_rules(
            "effective, effective, effective", _rulebook()
        )
        claims = categories[Category.REGULATORY_CLAIMS]
        assert claims.score == 95
        assert len(claims.issues) == 1
        assert claims.issues[0].severity == Severity.WARNING

    def test_score_clamped_at_zero(self) -> None:
        categories = run_rules("cure " * 10, _rulebook())
        assert categories[Category.REGULATORY_CLAIMS].score == 0
        assert len(categories[Category.REGULATORY_CLAIMS].issues) == 10

    def test_long_content_without_safety_terms(self) -> None:
        content = "x" * 201
        categories = run_rules(content, _rulebook())
        safety = categories[Category.SAFETY_INFO]
        assert safety.score == 80
        assert len(safety.issues) == 1
        assert safety.issues[0].position is None
        assert safety.issues[0].severity == Severity.WARNING
        assert safety.issues[0].category == Category.SAFETY_INFO

    def test_safety_term_anywhere_satisfies_check(self) -> None:
        content = "x" * 250 + " side effect"
        categories = run_rules(content, _rulebook())
        assert categories[Category.SAFETY_INFO].issues == []

    def test_content_at_threshold_skips_safety_check(self) -> None:
        categories = run_rules("x" * 200, _rulebook())
        assert categories[Category.SAFETY_INFO].score == 100

    def test_custom_penalties(self) -> None:
        rulebook = _rulebook(penalties=Penalties(error=40, warning=1))
        categories = run_rules("cure effective", rulebook)
        assert categories[Category.REGULATORY_CLAIMS].score == 59

    def test_issue_ids_stable_across_runs(self) -> None:
        first = run_rules("cure and cure", _rulebook())
        second = run_rules("cure and cure", _rulebook())
        ids_a = [i.id for i in first[Category.REGULATORY_CLAIMS].issues]
        ids_b = [i.id for i in second[Category.REGULATORY_CLAIMS].issues]
        assert ids_a == ids_b
        assert len(set(ids_a)) == 2


class TestPharmaceuticalRulebook:
    def test_prohibited_phrases_in_japanese_copy(self, pharma_text: str) -> None:
        rulebook = load_rulebook("pharmaceutical")
        categories = run_rules(pharma_text, rulebook)
        claims = categories[Category.REGULATORY_CLAIMS]
        errors = [i for i in claims.issues if i.severity == Severity.ERROR]
        assert len(errors) >= 2
        assert claims.score <= 70
        for issue in errors:
            assert issue.position is not None
            flagged = pharma_text[
                issue.position.start : issue.position.end
            ]
            assert flagged in {"最も効果的", "完全に治ります"}

    def test_missing_safety_information_flagged(self, pharma_text: str) -> None:
        rulebook = load_rulebook("pharmaceutical")
        categories = run_rules(pharma_text, rulebook)
        assert categories[Category.SAFETY_INFO].score == 80

    def test_safety_terms_present(self, pharma_text: str) -> None:
        rulebook = load_rulebook("pharmaceutical")
        content = pharma_text + "副作用については添付文書をご確認ください。"
        categories = run_rules(content, rulebook)
        assert categories[Category.SAFETY_INFO].issues == []

    def test_absolute_cure_and_safety_claims(self) -> None:
        content = "この薬は完全に治ります。100%安全です。"
        categories = run_rules(content, load_rulebook("pharmaceutical"))
        claims = categories[Category.REGULATORY_CLAIMS]
        errors = [i for i in claims.issues if i.severity == Severity.ERROR]
        assert len(errors) >= 2
        flagged = {
            content[i.position.start : i.position.end]
            for i in errors
            if i.position is not None
        }
        assert {"完全に治ります", "100%安全"} <= flagged
        assert claims.score <= 100 - 15 - 15
        assert build_report(categories).score < 100


class TestUnregulatedIndustry:
    def test_plain_press_release_has_no_issues(self) -> None:
        content = (
            "Hello, this is a normal press release about a product launch."
        )
        categories = run_rules(content, load_rulebook("technology"))
        assert all(not r.issues for r in categories.values())
        assert all(r.score == 100 for r in categories.values())
