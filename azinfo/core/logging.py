"""
azinfo.core.logging
───────────────────
Structured logs via structlog. Stdlib records (uvicorn, kubernetes, urllib3)
go through the same ProcessorFormatter, so the pod emits one format.

Configure via: AZINFO_LOG_LEVEL, AZINFO_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog() -> None:
    log_level = os.getenv("AZINFO_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("AZINFO_LOG_FORMAT", "json").lower()
    level = getattr(logging, log_level, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _redact_processor,
    ]

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    # uvicorn installs its own handlers unless told otherwise; route them to root.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True


# ── Redaction processor ───────────────────────────────────────────────────────

_REDACT_KEYS = frozenset({"authorization", "token"})

_REDACTED = "[REDACTED]"

# Service account tokens echoed back in cluster client errors.
_BEARER_RE = re.compile(r"(?i)\b(bearer)\s+[A-Za-z0-9._~+/=-]+")


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    for key, value in list(event_dict.items()):
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
        elif isinstance(value, str) and _BEARER_RE.search(value):
            event_dict[key] = _BEARER_RE.sub(rf"\1 {_REDACTED}", value)
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def configure_logging() -> None:
    """Install the structlog pipeline once. Safe to call repeatedly."""
    global _configured
    if not _configured:
        _configure_structlog()
        _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.info("az.refreshed", node="ip-10-0-1-7", zone="eu-west-1a")
    """
    configure_logging()
    return structlog.get_logger(name or __name__)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to the current async/thread context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context-bound log fields. Call at end of request."""
    structlog.contextvars.clear_contextvars()


__all__ = ["configure_logging", "get_logger", "bind_context", "clear_context"]
