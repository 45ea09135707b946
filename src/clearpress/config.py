"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from clearpress.constants import LLM_MAX_OUTPUT_TOKENS

logger = logging.getLogger(__name__)

# litellm provider prefix → Settings attribute holding its key
_PROVIDER_KEYS: dict[str, str] = {
    "anthropic": "anthropic_api_key",
    "openai": "openai_api_key",
}


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # LLM Provider
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Model chain (first = primary, rest = fallbacks tried in order)
    litellm_model_chain: Annotated[list[str], NoDecode] = [
        "anthropic/claude-sonnet-4-5-20250929",
    ]
    llm_timeout_seconds: int = 60
    llm_max_output_tokens: int = LLM_MAX_OUTPUT_TOKENS
    ai_enabled: bool = True

    # Rulebooks (empty = packaged defaults)
    rulebook_dir: Path | None = None

    # Logging
    log_level: str = "INFO"

    # API
    cors_origins: str = "http://localhost:3000"

    @field_validator("litellm_model_chain", mode="before")
    @classmethod
    def _parse_chain(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("litellm_model_chain")
    @classmethod
    def _validate_chain(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError(
                "litellm_model_chain must contain at least one model"
            )
        seen: set[str] = set()
        dupes: list[str] = []
        for m in v:
            if m in seen:
                dupes.append(m)
            seen.add(m)
        if dupes:
            logger.warning(
                "Duplicate models in LITELLM_MODEL_CHAIN: %s",
                ", ".join(dupes),
            )
        return v

    def api_key_for(self, model: str) -> str:
        """Return the configured API key for a ``provider/model`` name.

        Models without a known provider prefix resolve to an empty
        string, which callers treat as "no credentials".
        """
        provider = model.split("/", 1)[0] if "/" in model else ""
        attr = _PROVIDER_KEYS.get(provider)
        if attr is None:
            return ""
        return str(getattr(self, attr))

    @property
    def has_llm_credentials(self) -> bool:
        """True if at least one model in the chain has an API key."""
        return any(self.api_key_for(m) for m in self.litellm_model_chain)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
