"""Tests for rulebook YAML loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from clearpress.rules.loader import (
    get_rulebook,
    list_rulebooks,
    load_rulebook,
)


def _write(directory: Path, name: str, body: str) -> Path:
    path = directory / f"{name}.yaml"
    path.write_text(body, encoding="utf-8")
    return path


class TestLoadRulebook:
    def test_packaged_pharmaceutical(self) -> None:
        rb = load_rulebook("pharmaceutical")
        assert rb is not None
        assert rb.industry == "pharmaceutical"
        assert "最も効果的" in rb.prohibited_phrases
        assert rb.penalties.error == 15
        assert rb.penalties.warning == 5
        assert rb.penalties.safety == 20
        assert rb.safety_check_min_length == 200
        assert rb.safety is not None
        assert "禁忌" in rb.safety.terms

    def test_unknown_industry_is_unregulated(self) -> None:
        assert load_rulebook("technology") is None

    @pytest.mark.parametrize("key", ["../etc", "a/b", "a\\b"])
    def test_path_like_key_rejected(self, key: str) -> None:
        with pytest.raises(ValueError, match="Invalid industry key"):
            load_rulebook(key)

    def test_custom_directory_and_defaults(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            "finance",
            "industry: finance\n"
            "prohibited:\n"
            "  - phrase: guaranteed returns\n"
            "    rule: SEC 206\n",
        )
        rb = load_rulebook("finance", rulebooks_dir=tmp_path)
        assert rb is not None
        assert rb.prohibited[0].phrase == "guaranteed returns"
        assert rb.prohibited[0].message == "guaranteed returns"
        assert rb.penalties.error == 15
        assert rb.caution == ()
        assert rb.safety is None

    def test_mismatched_industry_rejected(self, tmp_path: Path) -> None:
        _write(tmp_path, "finance", "industry: banking\n")
        with pytest.raises(ValueError, match="declares industry"):
            load_rulebook("finance", rulebooks_dir=tmp_path)

    def test_phrase_entry_without_phrase_rejected(
        self, tmp_path: Path
    ) -> None:
        _write(tmp_path, "finance", "prohibited:\n  - message: x\n")
        with pytest.raises(ValueError, match="has no phrase"):
            load_rulebook("finance", rulebooks_dir=tmp_path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        _write(tmp_path, "finance", "- just\n- a list\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_rulebook("finance", rulebooks_dir=tmp_path)


class TestGetRulebook:
    def test_cached_instance_reused(self) -> None:
        assert get_rulebook("pharmaceutical") is get_rulebook(
            "pharmaceutical"
        )


class TestListRulebooks:
    def test_packaged_rulebooks(self) -> None:
        industries = [rb.industry for rb in list_rulebooks()]
        assert "pharmaceutical" in industries

    def test_sorted_by_industry(self, tmp_path: Path) -> None:
        _write(tmp_path, "zeta", "title: Z\n")
        _write(tmp_path, "alpha", "title: A\n")
        assert [rb.industry for rb in list_rulebooks(rulebooks_dir=tmp_path)] == [
            "alpha",
            "zeta",
        ]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list_rulebooks(rulebooks_dir=tmp_path / "nope") == []
