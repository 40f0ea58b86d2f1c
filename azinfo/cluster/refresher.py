"""
azinfo.cluster.refresher
────────────────────────
Background refresh of the node metadata cache.

refresh() performs one bounded lookup and writes exactly one record to the
cache. On failure the previous zone/region/IP/last_update are written back
with the new error, so a cluster API outage costs freshness, never data.

main() calls refresh() synchronously before the listener opens; start() then
ticks on a fixed grid from a daemon thread. Ticks that fall inside a slow
refresh are dropped, so refreshes never overlap.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Iterable

from azinfo.cluster.lookup import (
    EXTERNAL_IP,
    INTERNAL_IP,
    REGION_LABEL,
    ZONE_LABEL,
    NodeAddress,
    NodeInfo,
    NodeLookup,
)
from azinfo.core.clock import Clock, get_clock
from azinfo.core.config import Settings
from azinfo.core.errors import AzInfoError
from azinfo.core.logging import get_logger
from azinfo.core.metrics import record_refresh, record_success
from azinfo.reliability.cache import (
    IP_UNKNOWN,
    REGION_UNKNOWN,
    ZONE_UNKNOWN,
    MetadataCache,
    NodeMetadata,
)

logger = get_logger(__name__)


# ── Derivation ─────────────────────────────────────────────────────────────

def find_node_ip(addresses: Iterable[NodeAddress]) -> str:
    """First InternalIP wins; otherwise the last ExternalIP seen; else ""."""
    external = ""
    for addr in addresses:
        if addr.type == INTERNAL_IP:
            return addr.address
        if addr.type == EXTERNAL_IP:
            external = addr.address
    return external


def resolve_node_ip(addresses: Iterable[NodeAddress], override: str = "") -> str:
    return find_node_ip(addresses) or override or IP_UNKNOWN


def zone_and_region(node: NodeInfo) -> tuple[str, str]:
    zone = node.labels.get(ZONE_LABEL) or ZONE_UNKNOWN
    region = node.labels.get(REGION_LABEL) or REGION_UNKNOWN
    return zone, region


def _wait_for(next_tick: float) -> float:
    return min(max(0.0, next_tick - time.monotonic()), threading.TIMEOUT_MAX)


# ── Refresher ──────────────────────────────────────────────────────────────

class Refresher:
    """Sole writer of a MetadataCache."""

    def __init__(
        self,
        cache: MetadataCache,
        lookup: NodeLookup,
        settings: Settings,
        clock: Clock | None = None,
    ) -> None:
        self._cache = cache
        self._lookup = lookup
        self._settings = settings
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self) -> NodeMetadata:
        """Run one lookup and write the outcome to the cache."""
        node_name = self._settings.node_name
        start = time.monotonic()
        try:
            node = self._lookup.get(node_name, self._settings.api_timeout)
        except AzInfoError as exc:
            return self._record_failure(
                str(exc), start, code=exc.code, detail=exc.detail, context=exc.metadata
            )
        except Exception as exc:
            logger.exception("az.lookup_crashed", node=node_name)
            return self._record_failure(f"{type(exc).__name__}: {exc}", start, code="internal_error")

        zone, region = zone_and_region(node)
        node_ip = resolve_node_ip(node.addresses, self._settings.node_ip)
        now = (self._clock or get_clock()).now()

        previous = self._cache.snapshot()
        record = self._cache.set(zone, region, node_ip, "", now)
        duration = time.monotonic() - start
        record_refresh(node_name, True, duration)
        record_success(node_name, now.timestamp())

        changed = (previous.zone, previous.region, previous.node_ip) != (zone, region, node_ip)
        log = logger.info if changed else logger.debug
        log(
            "az.refreshed",
            node=node_name,
            zone=zone,
            region=region,
            node_ip=node_ip,
            duration_ms=round(duration * 1000, 2),
        )
        return record

    def _record_failure(
        self,
        error: str,
        start: float,
        code: str,
        detail: str | None = None,
        context: dict | None = None,
    ) -> NodeMetadata:
        previous = self._cache.snapshot()
        record = self._cache.set(
            previous.zone,
            previous.region,
            previous.node_ip,
            error,
            previous.last_update,
        )
        record_refresh(self._settings.node_name, False, time.monotonic() - start)
        logger.warning(
            "az.refresh_failed",
            node=self._settings.node_name,
            error=error,
            code=code,
            detail=detail or error,
            context=context or {},
            stale_zone=previous.zone,
        )
        return record

    # ── Background loop ────────────────────────────────────────────────────

    def start(self) -> None:
        # A thread left over from a timed-out stop() resumes ticking.
        self._stop.clear()
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run, name="az-refresher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout if timeout is not None else self._settings.api_timeout + 1.0)
            if thread.is_alive():
                logger.warning("refresher.stop_timed_out", node=self._settings.node_name)
                return
        self._thread = None

    def _run(self) -> None:
        interval = self._settings.refresh_interval
        next_tick = time.monotonic() + interval
        while not self._stop.wait(_wait_for(next_tick)):
            self.refresh()
            next_tick += interval
            now = time.monotonic()
            if next_tick <= now:
                dropped = int((now - next_tick) // interval) + 1
                next_tick += dropped * interval
                logger.warning("az.ticks_dropped", dropped=dropped, interval_s=interval)


__all__ = [
    "find_node_ip",
    "resolve_node_ip",
    "zone_and_region",
    "Refresher",
]
