"""
azinfo.reliability.health
─────────────────────────
Liveness and readiness bodies for the kubelet.

Liveness is unconditional while the process serves. Readiness is a predicate
over the current cache record: ready while it carries a resolved zone.
Failed refreshes keep the previous zone, so an API outage never flips a ready
instance back to 503.

Usage:
    @app.get("/readyz")
    async def readyz():
        body, status_code = readiness(cache.snapshot())
        return JSONResponse(body, status_code=status_code)
"""
from __future__ import annotations

import time

from azinfo.reliability.cache import NodeMetadata

ZONE_NOT_READY = "zone not ready"


def liveness() -> dict:
    return {"status": "ok", "timestamp": time.time()}


def readiness(meta: NodeMetadata) -> tuple[dict, int]:
    """Return the /readyz body and its HTTP status."""
    if meta.zone_resolved:
        return {"status": "ok", "zone": meta.zone, "timestamp": time.time()}, 200
    return {
        "status": "unavailable",
        "zone": meta.zone,
        "detail": ZONE_NOT_READY,
        "last_error": meta.last_error,
        "timestamp": time.time(),
    }, 503


__all__ = ["ZONE_NOT_READY", "liveness", "readiness"]
