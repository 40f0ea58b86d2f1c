"""
azinfo.web.app
──────────────
FastAPI application serving the cached node metadata.

Handlers only ever call MetadataCache.snapshot(); none of them touch the
cluster API, so request latency is independent of API latency and a stale
cache is reported as data, never as an HTTP error. The only status that
reflects cache state is /readyz.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse, Response

from azinfo import __version__
from azinfo.cluster.refresher import Refresher
from azinfo.core.clock import Clock, format_duration, format_rfc3339, format_server_time, get_clock
from azinfo.core.config import Settings
from azinfo.core.logging import get_logger
from azinfo.core.metrics import render_latest
from azinfo.reliability.cache import MetadataCache
from azinfo.reliability.health import liveness, readiness
from azinfo.web.middleware import RequestContextMiddleware
from azinfo.web.pages import dash_if_empty, render_info_page

logger = get_logger(__name__)


def create_app(
    cache: MetadataCache,
    settings: Settings,
    *,
    refresher: Refresher | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the app around an existing cache. When a refresher is given, its
    background loop is started and stopped with the app lifespan; the caller
    is expected to have warmed the cache already.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if refresher is not None:
            refresher.start()
        try:
            yield
        finally:
            if refresher is not None:
                refresher.stop()
                logger.info("refresher.stopped")

    app = FastAPI(
        title="az-info",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)
    app.state.cache = cache
    app.state.settings = settings

    def _now() -> str:
        return format_server_time((clock or get_clock()).now())

    @app.get("/", response_class=HTMLResponse)
    async def info_page() -> HTMLResponse:
        server_time = _now()
        meta = cache.snapshot()
        body = render_info_page(meta, settings, server_time)
        if settings.access_log:
            logger.info(
                "request.served",
                path="/",
                region=meta.region,
                zone=meta.zone,
                server_time=server_time,
            )
        return HTMLResponse(body)

    @app.get("/api/az")
    async def az() -> JSONResponse:
        meta = cache.snapshot()
        payload = {
            "az": meta.zone,
            "region": meta.region,
            "node_name": settings.node_name,
            "node_ip": meta.node_ip,
            "pod_name": settings.pod_name,
            "pod_ip": settings.pod_ip,
            "updated_at": format_rfc3339(meta.last_update),
            "last_error": dash_if_empty(meta.last_error),
            "source": "in-memory-cache",
            "api_timeout": format_duration(settings.api_timeout),
        }
        if settings.access_log:
            logger.info("request.served", path="/api/az", zone=meta.zone, region=meta.region)
        return JSONResponse(payload)

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        return JSONResponse(liveness())

    @app.get("/readyz")
    async def readyz() -> JSONResponse:
        body, status_code = readiness(cache.snapshot())
        return JSONResponse(body, status_code=status_code)

    if settings.metrics_enabled:
        @app.get("/metrics")
        async def metrics() -> Response:
            body, content_type = render_latest()
            return Response(content=body, media_type=content_type)

    return app


__all__ = ["create_app"]
