"""
azinfo.reliability.cache
────────────────────────
The node metadata cache: one record, one writer (the refresher), many
readers (request handlers).

Writes are copy-on-write. ``set`` builds a new frozen NodeMetadata and swaps
the reference under a lock; ``snapshot`` is a single attribute read and never
takes the lock, so readers neither block each other nor see a torn record.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime

ZONE_UNKNOWN = "ZONE UNKNOWN"
REGION_UNKNOWN = "REGION UNKNOWN"
IP_UNKNOWN = "0.0.0.0"
NOT_INITIALIZED = "not initialized"


@dataclass(frozen=True)
class NodeMetadata:
    zone: str = ZONE_UNKNOWN
    region: str = REGION_UNKNOWN
    node_ip: str = IP_UNKNOWN
    last_update: datetime | None = None
    last_error: str = NOT_INITIALIZED

    @property
    def zone_resolved(self) -> bool:
        return bool(self.zone) and self.zone != ZONE_UNKNOWN


class MetadataCache:
    """Thread-safe holder for the current NodeMetadata."""

    def __init__(self) -> None:
        self._current = NodeMetadata()
        self._write_lock = threading.Lock()

    def set(
        self,
        zone: str,
        region: str,
        node_ip: str,
        last_error: str,
        last_update: datetime | None,
    ) -> NodeMetadata:
        """Replace all five fields as one unit and return the new record."""
        record = NodeMetadata(
            zone=zone or ZONE_UNKNOWN,
            region=region or REGION_UNKNOWN,
            node_ip=node_ip or IP_UNKNOWN,
            last_update=last_update,
            last_error=last_error,
        )
        with self._write_lock:
            self._current = record
        return record

    def snapshot(self) -> NodeMetadata:
        """Return the current record. Immutable; safe to keep after return."""
        return self._current

    @property
    def ready(self) -> bool:
        """True while the current record carries a resolved zone."""
        return self._current.zone_resolved


__all__ = [
    "NodeMetadata",
    "MetadataCache",
    "ZONE_UNKNOWN",
    "REGION_UNKNOWN",
    "IP_UNKNOWN",
    "NOT_INITIALIZED",
]
