"""
azinfo
──────
Reports the node, availability zone and region a pod runs in. Import from
here, not from sub-modules directly.
"""
__version__ = "0.1.0"

from azinfo.core.config import Settings, get_settings, load_settings
from azinfo.core.errors import (
    AzInfoError,
    AuthError,
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from azinfo.core.logging import get_logger
from azinfo.reliability.cache import MetadataCache, NodeMetadata
from azinfo.cluster.lookup import KubernetesNodeLookup, NodeAddress, NodeInfo, NodeLookup
from azinfo.cluster.refresher import Refresher
from azinfo.web.app import create_app

__all__ = [
    # config
    "Settings", "get_settings", "load_settings",
    # errors
    "AzInfoError", "AuthError", "ConfigurationError", "ForbiddenError",
    "NotFoundError", "RateLimitError", "UpstreamError",
    # logging
    "get_logger",
    # cache
    "MetadataCache", "NodeMetadata",
    # cluster
    "KubernetesNodeLookup", "NodeAddress", "NodeInfo", "NodeLookup", "Refresher",
    # web
    "create_app",
]
