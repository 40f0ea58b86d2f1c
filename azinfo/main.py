"""az-info entry point.

Startup order:
  1. resolve settings from the environment (NODE_NAME is mandatory)
  2. build the cluster client
  3. refresh the cache once, synchronously
  4. open the HTTP listener; the refresher ticks in the background

Any ConfigurationError before step 4 exits the process with status 1.
"""

from __future__ import annotations

import sys

import uvicorn

from azinfo.cluster.lookup import build_node_lookup
from azinfo.cluster.refresher import Refresher
from azinfo.core.clock import format_duration
from azinfo.core.config import Settings, get_settings
from azinfo.core.errors import ConfigurationError
from azinfo.core.logging import configure_logging, get_logger
from azinfo.reliability.cache import MetadataCache
from azinfo.web.app import create_app

HOST = "0.0.0.0"  # noqa: S104 - pod networking

log = get_logger("azinfo")


def _bootstrap() -> tuple[Settings, MetadataCache, Refresher]:
    settings = get_settings()
    log.info(
        "pod.identity",
        pod=settings.pod_name,
        namespace=settings.pod_namespace,
        node=settings.node_name,
        node_ip=settings.node_ip,
    )
    if settings.timeout_exceeds_interval:
        log.warning(
            "config.timeout_exceeds_interval",
            api_timeout=format_duration(settings.api_timeout),
            refresh_interval=format_duration(settings.refresh_interval),
        )

    cache = MetadataCache()
    refresher = Refresher(cache, build_node_lookup(settings), settings)

    # Warm-up cache before serving traffic.
    meta = refresher.refresh()
    log.info("az.warmup_complete", zone=meta.zone, region=meta.region, error=meta.last_error or None)
    return settings, cache, refresher


def main() -> int:
    configure_logging()
    try:
        settings, cache, refresher = _bootstrap()
    except ConfigurationError as exc:
        log.error("startup.fatal", code=exc.code, error=exc.user_message, detail=exc.detail)
        return 1

    app = create_app(cache, settings, refresher=refresher)
    log.info(
        "server.starting",
        port=settings.listen_port,
        refresh=format_duration(settings.refresh_interval),
    )
    uvicorn.run(
        app,
        host=HOST,
        port=settings.listen_port,
        log_config=None,
        access_log=False,
        timeout_keep_alive=30,
    )
    log.info("server.shutdown_complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
