"""Frozen dataclasses for industry rulebooks."""

from __future__ import annotations

from dataclasses import dataclass, field

from clearpress.constants import (
    ERROR_PENALTY,
    SAFETY_CHECK_MIN_LENGTH,
    SAFETY_PENALTY,
    WARNING_PENALTY,
)


@dataclass(frozen=True)
class PhraseRule:
    """A phrase the engine flags wherever it appears."""

    phrase: str
    message: str
    rule: str


@dataclass(frozen=True)
class Penalties:
    """Points subtracted from a category score per finding."""

    error: int = ERROR_PENALTY
    warning: int = WARNING_PENALTY
    safety: int = SAFETY_PENALTY


@dataclass(frozen=True)
class SafetyRequirement:
    """Terms of which at least one must appear in longer content."""

    terms: tuple[str, ...]
    message: str
    suggestion: str = ""
    rule: str = ""


@dataclass(frozen=True)
class Rulebook:
    """All local rules for one regulated industry."""

    industry: str
    title: str = ""
    penalties: Penalties = field(default_factory=Penalties)
    safety_check_min_length: int = SAFETY_CHECK_MIN_LENGTH
    prohibited: tuple[PhraseRule, ...] = field(default_factory=tuple)
    caution: tuple[PhraseRule, ...] = field(default_factory=tuple)
    safety: SafetyRequirement | None = None

    @property
    def prohibited_phrases(self) -> tuple[str, ...]:
        return tuple(r.phrase for r in self.prohibited)
