"""Shared LLM call with per-model circuit breaker and rate-limit retry."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from litellm.exceptions import RateLimitError as LitellmRateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from clearpress.constants import (
    CB_LLM_FAILURE_THRESHOLD,
    CB_LLM_RECOVERY_TIMEOUT,
    LLM_MAX_OUTPUT_TOKENS,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types, typed alias
if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion


@dataclass(frozen=True)
class LLMCallResult:
    """Text completion plus token metadata."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


def _is_non_rate_limit_error(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Return True if NOT a rate limit error (counts as a CB failure).

    Rate limits are backpressure, not an outage, so they never open
    the breaker.
    """
    return not issubclass(thrown_type, LitellmRateLimitError)


# One breaker per model so an outage at the primary provider does not
# block the fallback models.
_breaker_registry: dict[str, CircuitBreaker] = {}  # pyright: ignore[reportUnknownVariableType]


def _get_breaker(model: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
    """Get or create a circuit breaker for the given model."""
    if model not in _breaker_registry:
        _breaker_registry[model] = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=CB_LLM_FAILURE_THRESHOLD,
            recovery_timeout=CB_LLM_RECOVERY_TIMEOUT,
            expected_exception=_is_non_rate_limit_error,
            name=f"llm_{model}",
        )
    return _breaker_registry[model]


@retry(
    stop=stop_after_attempt(RETRY_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(
        initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
    ),
    retry=retry_if_exception_type(LitellmRateLimitError),
    reraise=True,
)
async def guarded_llm_call(
    model: str,
    prompt: str,
    timeout: int,
    *,
    api_key: str | None = None,
    max_tokens: int = LLM_MAX_OUTPUT_TOKENS,
) -> LLMCallResult:
    """Submit one prompt, receive one text completion.

    - Each model has its own circuit breaker; it opens after 5
      consecutive non-rate-limit failures and recovers after 30s.
    - Rate-limit errors (429) are retried with jittered exponential
      backoff.
    - Any other failure (auth, non-success status, timeout) is raised
      to the caller, which decides how to degrade.
    """
    breaker = _get_breaker(model)
    if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
        raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]
    with breaker:  # pyright: ignore[reportUnknownMemberType]
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": timeout,
            "max_tokens": max_tokens,
        }
        if api_key:
            kwargs["api_key"] = api_key
        response: Any = await _acompletion(**kwargs)

    usage: Any = getattr(response, "usage", None)
    input_tokens: int = getattr(usage, "prompt_tokens", 0) or 0
    output_tokens: int = getattr(usage, "completion_tokens", 0) or 0
    logger.debug(
        "event=llm_call_done model=%s input_tokens=%d output_tokens=%d",
        model,
        input_tokens,
        output_tokens,
    )

    return LLMCallResult(
        content=str(response.choices[0].message.content or ""),
        model=model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )
