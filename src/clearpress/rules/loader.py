"""Load and validate industry rulebook YAML files."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

import yaml

from clearpress.constants import SAFETY_CHECK_MIN_LENGTH
from clearpress.rules.schemas import (
    Penalties,
    PhraseRule,
    Rulebook,
    SafetyRequirement,
)

_RULEBOOKS_DIR = Path(__file__).resolve().parent / "rulebooks"


def _rulebooks_dir() -> Path:
    """Return the packaged rulebooks directory path."""
    return _RULEBOOKS_DIR


def load_rulebook(
    industry: str, *, rulebooks_dir: Path | None = None
) -> Rulebook | None:
    """Load ``{industry}.yaml`` from the rulebooks directory.

    Returns ``None`` when the industry has no rulebook, meaning it is
    not a regulated vertical. Raises ``ValueError`` for a malformed
    rulebook or an industry key that looks like a path.
    """
    if ".." in industry or "/" in industry or "\\" in industry:
        msg = f"Invalid industry key: {industry!r}"
        raise ValueError(msg)

    directory = rulebooks_dir or _rulebooks_dir()
    path = directory / f"{industry}.yaml"
    if not path.exists():
        return None
    return _parse_rulebook(path, industry)


@functools.cache
def _cached_rulebook(
    industry: str, rulebooks_dir: Path | None
) -> Rulebook | None:
    return load_rulebook(industry, rulebooks_dir=rulebooks_dir)


def get_rulebook(
    industry: str, *, rulebooks_dir: Path | None = None
) -> Rulebook | None:
    """Cached ``load_rulebook`` for hot paths (one parse per process)."""
    return _cached_rulebook(industry, rulebooks_dir)


def list_rulebooks(*, rulebooks_dir: Path | None = None) -> list[Rulebook]:
    """Load every rulebook in the directory, sorted by industry."""
    directory = rulebooks_dir or _rulebooks_dir()
    if not directory.exists():
        return []
    return [
        _parse_rulebook(path, path.stem)
        for path in sorted(directory.glob("*.yaml"))
    ]


def _parse_rulebook(path: Path, industry: str) -> Rulebook:
    raw: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        msg = f"Rulebook {path.name} must be a mapping"
        raise ValueError(msg)

    declared = str(raw.get("industry", industry))
    if declared != industry:
        msg = (
            f"Rulebook {path.name} declares industry '{declared}', "
            f"expected '{industry}'"
        )
        raise ValueError(msg)

    penalties_raw: dict[str, Any] = raw.get("penalties") or {}
    defaults = Penalties()
    penalties = Penalties(
        error=int(penalties_raw.get("error", defaults.error)),
        warning=int(penalties_raw.get("warning", defaults.warning)),
        safety=int(penalties_raw.get("safety", defaults.safety)),
    )

    return Rulebook(
        industry=industry,
        title=str(raw.get("title", "")),
        penalties=penalties,
        safety_check_min_length=int(
            raw.get("safety_check_min_length", SAFETY_CHECK_MIN_LENGTH)
        ),
        prohibited=_parse_phrases(raw.get("prohibited", []), path, "prohibited"),
        caution=_parse_phrases(raw.get("caution", []), path, "caution"),
        safety=_parse_safety(raw.get("safety")),
    )


def _parse_phrases(
    items: Any, path: Path, section: str
) -> tuple[PhraseRule, ...]:
    if not isinstance(items, list):
        msg = f"'{section}' in {path.name} must be a list"
        raise ValueError(msg)
    rules: list[PhraseRule] = []
    for i, item in enumerate(items):
        phrase = str(item.get("phrase", "")) if isinstance(item, dict) else ""
        if not phrase:
            msg = f"{section}[{i}] in {path.name} has no phrase"
            raise ValueError(msg)
        rules.append(
            PhraseRule(
                phrase=phrase,
                message=str(item.get("message", phrase)),
                rule=str(item.get("rule", "")),
            )
        )
    return tuple(rules)


def _parse_safety(raw: Any) -> SafetyRequirement | None:
    if not isinstance(raw, dict):
        return None
    terms = tuple(str(t) for t in raw.get("terms", []) if str(t))
    if not terms:
        return None
    return SafetyRequirement(
        terms=terms,
        message=str(raw.get("message", "")),
        suggestion=str(raw.get("suggestion", "")),
        rule=str(raw.get("rule", "")),
    )
