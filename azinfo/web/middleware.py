"""
azinfo.web.middleware
─────────────────────
ASGI middleware that binds a request id into the structlog context for the
life of each HTTP request and logs its completion at debug level.
"""
from __future__ import annotations

import time
import uuid
from typing import Any

from azinfo.core.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


def _header(headers: dict, name: bytes) -> str:
    # h11 passes obs-text (0x80-0xFF) header bytes through undecoded.
    return headers.get(name, b"").decode("utf-8", errors="replace")


class RequestContextMiddleware:
    """
    Usage::

        app.add_middleware(RequestContextMiddleware)
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = (
            _header(headers, b"x-request-id")
            or _header(headers, b"x-correlation-id")
            or str(uuid.uuid4())
        )
        status: dict[str, int] = {}

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        clear_context()
        bind_context(request_id=request_id)
        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.debug(
                "request_completed",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                path=scope.get("path", ""),
                method=scope.get("method", ""),
                status=status.get("code"),
            )
            clear_context()


__all__ = ["RequestContextMiddleware"]
