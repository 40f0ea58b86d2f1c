"""
azinfo.cluster.lookup
─────────────────────
Cluster node lookup: fetch one Node by name under a deadline and reduce it
to the labels and addresses the refresher needs.

KubernetesNodeLookup wraps CoreV1Api.read_node. Every failure mode is mapped
onto the error taxonomy so the refresher can record it without knowing about
the kubernetes client:

    404            → NotFoundError
    401            → AuthError
    403            → ForbiddenError
    other status   → UpstreamError
    transport/timeout → UpstreamError
    throttled      → RateLimitError
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from azinfo.core.config import Settings
from azinfo.core.errors import (
    AuthError,
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
)
from azinfo.core.logging import get_logger
from azinfo.reliability.ratelimit import TokenBucket

logger = get_logger(__name__)

ZONE_LABEL = "topology.kubernetes.io/zone"
REGION_LABEL = "topology.kubernetes.io/region"

INTERNAL_IP = "InternalIP"
EXTERNAL_IP = "ExternalIP"


# ── Data models ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NodeAddress:
    type: str
    address: str


@dataclass
class NodeInfo:
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    addresses: list[NodeAddress] = field(default_factory=list)

    @classmethod
    def from_v1_node(cls, node: Any) -> "NodeInfo":
        """Build from a kubernetes.client.V1Node."""
        metadata = node.metadata
        status = node.status
        addresses = [
            NodeAddress(type=a.type, address=a.address)
            for a in ((status.addresses if status else None) or [])
        ]
        return cls(
            name=(metadata.name if metadata else "") or "",
            labels=dict((metadata.labels if metadata else None) or {}),
            addresses=addresses,
        )


# ── Protocol ───────────────────────────────────────────────────────────────

@runtime_checkable
class NodeLookup(Protocol):
    """Fetch a node by name. Must return or raise within *timeout* seconds."""

    def get(self, node_name: str, timeout: float) -> NodeInfo: ...


# ── Kubernetes implementation ──────────────────────────────────────────────

class KubernetesNodeLookup:
    def __init__(self, core_v1: client.CoreV1Api, limiter: TokenBucket | None = None) -> None:
        self._core_v1 = core_v1
        self._limiter = limiter

    def get(self, node_name: str, timeout: float) -> NodeInfo:
        deadline = time.monotonic() + timeout
        if self._limiter is not None:
            self._limiter.acquire(timeout)
        remaining = max(deadline - time.monotonic(), 0.001)

        try:
            node = self._core_v1.read_node(node_name, _request_timeout=remaining)
        except ApiException as exc:
            raise _map_api_exception(exc, node_name) from exc
        except (urllib3.exceptions.HTTPError, OSError) as exc:
            raise UpstreamError(
                f"get node {node_name}: {exc}",
                node=node_name,
            ) from exc
        return NodeInfo.from_v1_node(node)


def _map_api_exception(exc: ApiException, node_name: str) -> Exception:
    reason = exc.reason or "error"
    message = f'nodes "{node_name}": {exc.status} {reason}'
    if exc.status == 404:
        return NotFoundError(f'nodes "{node_name}" not found', node=node_name)
    if exc.status == 401:
        return AuthError(message, node=node_name)
    if exc.status == 403:
        return ForbiddenError(
            f'nodes "{node_name}" is forbidden: service account cannot get nodes',
            node=node_name,
        )
    return UpstreamError(message, node=node_name, status=exc.status)


def build_core_v1(settings: Settings) -> client.CoreV1Api:
    """
    Build a CoreV1Api from the service account, falling back to the local
    kubeconfig when not running in a cluster.
    Raises ConfigurationError when neither is available.
    """
    configuration = client.Configuration()
    try:
        config.load_incluster_config(client_configuration=configuration)
        source = "in-cluster"
    except ConfigException as in_cluster_exc:
        try:
            config.load_kube_config(client_configuration=configuration)
            source = "kubeconfig"
        except (ConfigException, OSError) as exc:
            raise ConfigurationError(
                "failed to get cluster config",
                detail=f"in-cluster: {in_cluster_exc}; kubeconfig: {exc}",
            ) from exc
    logger.info(
        "cluster.client_configured",
        source=source,
        host=configuration.host,
        qps=settings.kube_client_qps,
        burst=settings.kube_client_burst,
    )
    return client.CoreV1Api(client.ApiClient(configuration))


def build_node_lookup(settings: Settings) -> KubernetesNodeLookup:
    """Wire the kubernetes-backed lookup with its client-side throttle."""
    limiter = TokenBucket(settings.kube_client_qps, settings.kube_client_burst)
    return KubernetesNodeLookup(build_core_v1(settings), limiter)


__all__ = [
    "ZONE_LABEL",
    "REGION_LABEL",
    "INTERNAL_IP",
    "EXTERNAL_IP",
    "NodeAddress",
    "NodeInfo",
    "NodeLookup",
    "KubernetesNodeLookup",
    "build_core_v1",
    "build_node_lookup",
]
