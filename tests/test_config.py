"""Tests for Settings validators and provider key lookup."""

from __future__ import annotations

import logging

import pytest

from clearpress.config import Settings


class TestModelChainParsing:
    def test_comma_separated_string_parsed_to_list(self) -> None:
        """_parse_chain splits comma-separated strings."""
        s = Settings(litellm_model_chain="model-a,model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_comma_separated_with_spaces(self) -> None:
        s = Settings(litellm_model_chain="model-a , model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_json_list_passthrough(self) -> None:
        s = Settings(litellm_model_chain=["model-a", "model-b"])
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(
            "LITELLM_MODEL_CHAIN", "openai/gpt-4.1-mini,anthropic/x"
        )
        assert Settings().litellm_model_chain == [
            "openai/gpt-4.1-mini",
            "anthropic/x",
        ]


class TestModelChainValidation:
    def test_empty_chain_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain=[])

    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain="")  # type: ignore[arg-type]

    def test_duplicate_models_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="clearpress.config"):
            s = Settings(
                litellm_model_chain=["model-a", "model-a", "model-b"]
            )
        assert "Duplicate models in LITELLM_MODEL_CHAIN" in caplog.text
        assert s.litellm_model_chain == ["model-a", "model-a", "model-b"]


class TestApiKeys:
    def test_key_by_provider_prefix(self) -> None:
        s = Settings(anthropic_api_key="a-key", openai_api_key="o-key")
        assert s.api_key_for("anthropic/claude") == "a-key"
        assert s.api_key_for("openai/gpt") == "o-key"

    def test_unknown_provider_has_no_key(self) -> None:
        assert Settings().api_key_for("mistral/large") == ""
        assert Settings().api_key_for("bare-model") == ""

    def test_has_llm_credentials(self) -> None:
        assert Settings().has_llm_credentials
        assert not Settings(
            anthropic_api_key="",
            litellm_model_chain=["anthropic/claude"],
        ).has_llm_credentials


class TestDefaults:
    def test_ai_enabled_and_packaged_rulebooks(self) -> None:
        s = Settings()
        assert s.ai_enabled is True
        assert s.rulebook_dir is None
        assert s.llm_max_output_tokens == 2048

    def test_ai_disabled_from_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AI_ENABLED", "false")
        assert Settings().ai_enabled is False
