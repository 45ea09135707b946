"""Process-wide logging for clearpress entry points.

``setup_logging`` runs once, before anything imports litellm, because
litellm reads ``LITELLM_LOG`` at import time. ``cleanup_third_party_handlers``
runs once after all imports and strips the handlers litellm attaches to
its own loggers, which would otherwise print every record twice.
``set_level`` moves the root level later, once settings are loaded.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Floor level per third-party logger
_THIRD_PARTY_LEVELS: dict[str, int] = {
    "LiteLLM": logging.WARNING,
    "LiteLLM Router": logging.WARNING,
    "LiteLLM Proxy": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}

_LITELLM_LOGGERS = tuple(
    name for name in _THIRD_PARTY_LEVELS if name.startswith("LiteLLM")
)

_phase1_done = False
_phase2_done = False

logger = logging.getLogger(__name__)


def resolve_level(level: str | int) -> int:
    """Turn ``"debug"``, ``"INFO"`` or a numeric level into an int.

    Raises ``ValueError`` for names logging does not know.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return value


def setup_logging(level: str | int = "INFO") -> None:
    """Configure the root logger. Only the first call has any effect."""
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    _phase1_done = True

    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name, floor in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(floor)


def cleanup_third_party_handlers() -> None:
    """Let litellm records reach root handlers only. Runs once."""
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True


def set_level(level: str | int) -> None:
    """Change the root level; third-party floors stay in place."""
    resolved = resolve_level(level)
    logging.getLogger().setLevel(resolved)
    logger.debug(
        "event=log_level_set level=%s", logging.getLevelName(resolved)
    )
