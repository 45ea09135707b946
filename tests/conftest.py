"""Shared test fixtures: fake API keys, breaker reset, sample content."""

import os

# Force demo API keys for all tests, no real LLM calls.
# These are set unconditionally at import time, so even if you have
# real keys in your shell environment, pytest overwrites them before
# any Settings() is created.
os.environ["ANTHROPIC_API_KEY"] = "for-demo-purposes-only"
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"

from typing import Any

import pytest
from circuitbreaker import CircuitBreakerMonitor
from tenacity import wait_none

from clearpress.analysis.llm._llm_call import (
    _breaker_registry,
    guarded_llm_call,
)
from clearpress.config import Settings
from clearpress.rules.loader import _cached_rulebook

# Over 200 characters, with two prohibited phrases, one caution phrase
# and no safety terminology.
PHARMA_VIOLATING = (
    "新薬アルファは最も効果的な治療薬です。服用すれば頭痛が完全に治ります。"
    "臨床現場でも効果があると評価されています。"
    + "本製品は多くの患者様に選ばれており、毎日の生活を支えます。" * 6
)

TECH_RELEASE = (
    "Acme Cloud today announced general availability of its managed "
    "database service in three new regions, with automated backups "
    "and point-in-time recovery for all customers."
)


@pytest.fixture(autouse=True)
def _reset_breakers() -> None:
    """Reset circuit breakers between tests."""
    _breaker_registry.clear()
    for cb in CircuitBreakerMonitor.get_circuits():
        cb.reset()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def _disable_retry_wait() -> Any:
    """Disable tenacity wait time for fast tests."""
    original_wait = guarded_llm_call.retry.wait  # type: ignore[attr-defined]
    guarded_llm_call.retry.wait = wait_none()  # type: ignore[attr-defined]
    yield
    guarded_llm_call.retry.wait = original_wait  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def _clear_rulebook_cache() -> None:
    _cached_rulebook.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        litellm_model_chain=["anthropic/claude-sonnet-4-5-20250929"],
        rulebook_dir=None,
        ai_enabled=True,
    )


@pytest.fixture
def rules_only_settings() -> Settings:
    return Settings(ai_enabled=False)


@pytest.fixture
def pharma_text() -> str:
    return PHARMA_VIOLATING


@pytest.fixture
def tech_text() -> str:
    return TECH_RELEASE
