"""FastAPI dependency injection for request-scoped collaborators."""

from __future__ import annotations

from fastapi import Request

from clearpress.config import Settings


def get_settings(request: Request) -> Settings:
    """Get Settings from app.state."""
    return request.app.state.settings  # type: ignore[no-any-return]
