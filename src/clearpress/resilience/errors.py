"""Exception taxonomy and error classification.

Only two kinds of failure ever reach a caller:

- ``ComplianceValidationError``: a required input field is missing.
  Raised before any detector runs.
- ``EditorCapabilityError``: the host editor cannot carry compliance
  annotations. Raised once, when the mark manager is constructed.

Everything else is degraded rather than raised. AI failures collapse
into a rules-only report and a single position that cannot be mapped
skips one issue. ``classify_error`` labels the degraded AI calls in
logs so timeouts, auth failures and malformed replies stay
distinguishable when reading them.
"""

from __future__ import annotations

import asyncio
from enum import Enum


class ComplianceError(Exception):
    """Base class for errors raised by clearpress."""


class ComplianceValidationError(ComplianceError):
    """A required request field is missing or empty."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required")
        self.field = field


class EditorCapabilityError(ComplianceError):
    """The host editor lacks a capability the mark manager needs."""


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, network errors
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    AUTH = "auth"  # 401, 403
    CLIENT = "client"  # other 4xx
    MALFORMED = "malformed"  # reply could not be decoded
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error for structured logging.

    Checks structured attributes first (status_code), falls back
    to string matching for untyped exceptions.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if status_code in (401, 403):
            return ErrorClass.AUTH
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT
    if isinstance(error, ValueError):
        # json.JSONDecodeError is a ValueError subclass
        return ErrorClass.MALFORMED

    msg = str(error).lower()
    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return ErrorClass.TRANSIENT
    if "401" in msg or "403" in msg or "api key" in msg:
        return ErrorClass.AUTH
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "connection" in msg:
        return ErrorClass.TRANSIENT

    return ErrorClass.UNKNOWN
