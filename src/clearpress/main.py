"""FastAPI application exposing the compliance check."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Phase 1: Singleton logging, MUST be before any clearpress imports
# (they transitively import litellm which reads LITELLM_LOG at import time)
from clearpress.logging_config import setup_logging

setup_logging()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from clearpress import __version__  # noqa: E402
from clearpress.api.routes import compliance, health  # noqa: E402
from clearpress.config import Settings  # noqa: E402
from clearpress.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
    set_level,
)
from clearpress.rules.loader import list_rulebooks  # noqa: E402

# Phase 2: Now that all imports (including litellm) are done,
# clear litellm's duplicate handlers.
cleanup_third_party_handlers()

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = _settings
    set_level(settings.log_level)
    app.state.settings = settings

    if not settings.has_llm_credentials:
        _logger.warning("event=no_llm_credentials action=rules_only")
    _logger.info(
        "event=startup rulebooks=%s ai_enabled=%s",
        ",".join(
            rb.industry
            for rb in list_rulebooks(rulebooks_dir=settings.rulebook_dir)
        ),
        settings.ai_enabled,
    )

    yield


app = FastAPI(
    title="Clearpress",
    description="Regulatory compliance checks for PR content",
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

_settings = Settings()
_cors_origins = [
    o.strip()
    for o in _settings.cors_origins.split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)

app.include_router(health.router)
app.include_router(compliance.router)
