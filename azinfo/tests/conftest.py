"""
azinfo test configuration.

No cluster is required: the node lookup is replaced by FakeNodeLookup and
the kubernetes client by mocks where the real adapter is under test.
"""
from __future__ import annotations

import pytest
import structlog

from azinfo.core.clock import Clock
from azinfo.core.config import Settings, _reset_settings
from azinfo.core.logging import configure_logging
from azinfo.reliability.cache import MetadataCache
from azinfo.tests.fakes import FROZEN_AT

configure_logging()
# capture_logs() only sees loggers that have not been cached yet.
structlog.configure(cache_logger_on_first_use=False)


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Each test resolves settings from its own environment."""
    _reset_settings()
    yield
    _reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        node_name="worker-1",
        node_ip="",
        pod_name="az-info-7d9c",
        pod_namespace="demo",
        pod_ip="10.128.2.17",
        refresh_interval=60.0,
        api_timeout=2.0,
        access_log=False,
    )


@pytest.fixture
def cache() -> MetadataCache:
    return MetadataCache()


@pytest.fixture
def frozen_clock() -> Clock:
    return Clock().freeze(FROZEN_AT)
