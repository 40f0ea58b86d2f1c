"""
azinfo.core.errors
──────────────────
Error taxonomy for the service. Startup failures are ConfigurationError;
everything a node lookup can raise derives from AzInfoError so the refresher
can record it as ``last_error`` and carry on.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class AzInfoError(Exception):
    """
    Base class for all service errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to show on the info page
    - detail: internal context, used for logs
    - metadata: structured context logged with the failure
    """

    code: str = "internal_error"

    def __init__(
        self,
        user_message: str = "An unexpected error occurred.",
        *,
        code: str | None = None,
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.user_message)


# ── Refresh failures ──────────────────────────────────────────────────────────

class AuthError(AzInfoError):
    """The service account token was rejected."""
    code = "auth_error"


class ForbiddenError(AzInfoError):
    """Authenticated, but RBAC does not allow reading the node."""
    code = "forbidden"


class NotFoundError(AzInfoError):
    """The configured node does not exist."""
    code = "not_found"


class RateLimitError(AzInfoError):
    """Client-side throttle could not grant a token before the deadline."""
    code = "rate_limit_exceeded"

    def __init__(
        self,
        user_message: str = "Client-side rate limit exceeded.",
        *,
        retry_after: float | None = None,
        **metadata: Any,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(user_message, retry_after=retry_after, **metadata)


class UpstreamError(AzInfoError):
    """Transport failure, timeout or 5xx from the cluster API."""
    code = "upstream_error"


# ── Startup ───────────────────────────────────────────────────────────────────

class ConfigurationError(AzInfoError):
    """Misconfiguration detected at startup. Fatal."""
    code = "configuration_error"


__all__ = [
    "AzInfoError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "UpstreamError",
    "ConfigurationError",
]
