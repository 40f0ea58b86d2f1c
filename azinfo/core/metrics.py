"""
azinfo.core.metrics
───────────────────
Prometheus instruments for the refresh loop, registered once at import on
the default registry and served by the app at GET /metrics.

Minimal stack: prometheus-client
Configure via: METRICS_ENABLED=true|false
"""
from __future__ import annotations

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Standard labels applied to every metric
_DEFAULT_LABELS = ["service", "node"]
_SERVICE = os.getenv("APP_NAME", "az-info")

REFRESH_TOTAL = Counter(
    "azinfo_refresh_total",
    "Node metadata refresh attempts by result.",
    _DEFAULT_LABELS + ["result"],
)

LOOKUP_DURATION = Histogram(
    "azinfo_lookup_duration_seconds",
    "Latency of the cluster node lookup, including failures.",
    _DEFAULT_LABELS,
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

LAST_SUCCESS = Gauge(
    "azinfo_last_success_timestamp_seconds",
    "Unix time of the last successful refresh.",
    _DEFAULT_LABELS,
)


def record_refresh(node: str, ok: bool, duration: float) -> None:
    """Record one refresh attempt."""
    REFRESH_TOTAL.labels(_SERVICE, node, "success" if ok else "failure").inc()
    LOOKUP_DURATION.labels(_SERVICE, node).observe(duration)


def record_success(node: str, timestamp: float) -> None:
    LAST_SUCCESS.labels(_SERVICE, node).set(timestamp)


def render_latest() -> tuple[bytes, str]:
    """Return (body, content_type) for the exposition endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = ["record_refresh", "record_success", "render_latest"]
