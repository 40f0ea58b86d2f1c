"""Tests for azinfo.core modules."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from azinfo.core.clock import (
    MAX_DURATION_SECONDS,
    Clock,
    format_duration,
    format_rfc3339,
    format_server_time,
    get_clock,
    parse_duration,
    set_clock,
)
from azinfo.core.config import Settings, get_settings, load_settings
from azinfo.core.errors import (
    AuthError,
    AzInfoError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from azinfo.core.logging import _redact_processor

_ENV_KEYS = (
    "NODE_NAME", "NODE_IP", "POD_NAME", "POD_NAMESPACE", "POD_IP",
    "AZ_REFRESH_INTERVAL", "KUBE_API_TIMEOUT", "ACCESS_LOG",
    "KUBE_CLIENT_QPS", "KUBE_CLIENT_BURST", "LISTEN_PORT", "METRICS_ENABLED",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    return monkeypatch


# ── config ─────────────────────────────────────────────────────────────────

class TestConfig:
    def test_defaults(self, clean_env):
        clean_env.setenv("NODE_NAME", "worker-1")
        s = load_settings()
        assert s.node_name == "worker-1"
        assert s.refresh_interval == 60.0
        assert s.api_timeout == 2.0
        assert s.access_log is False
        assert s.kube_client_qps == 20.0
        assert s.kube_client_burst == 40
        assert s.listen_port == 8080
        assert s.metrics_enabled is True
        assert s.node_ip == ""

    def test_identity_from_downward_api(self, clean_env):
        clean_env.setenv("NODE_NAME", "worker-2")
        clean_env.setenv("POD_NAME", "az-info-abc")
        clean_env.setenv("POD_NAMESPACE", "demo")
        clean_env.setenv("POD_IP", "10.128.0.9")
        clean_env.setenv("NODE_IP", "192.168.1.20")
        s = load_settings()
        assert (s.pod_name, s.pod_namespace, s.pod_ip) == ("az-info-abc", "demo", "10.128.0.9")
        assert s.node_ip == "192.168.1.20"

    def test_missing_node_name_is_fatal(self, clean_env):
        with pytest.raises(ConfigurationError, match="NODE_NAME"):
            load_settings()

    def test_blank_node_name_is_fatal(self, clean_env):
        clean_env.setenv("NODE_NAME", "   ")
        with pytest.raises(ConfigurationError):
            get_settings()

    def test_get_settings_is_cached(self, clean_env):
        clean_env.setenv("NODE_NAME", "worker-1")
        assert get_settings() is get_settings()

    @pytest.mark.parametrize("raw, expected", [
        ("90s", 90.0),
        ("1m30s", 90.0),
        ("500ms", 0.5),
        ("2h", 7200.0),
    ])
    def test_refresh_interval_go_syntax(self, clean_env, raw, expected):
        clean_env.setenv("NODE_NAME", "n")
        clean_env.setenv("AZ_REFRESH_INTERVAL", raw)
        assert load_settings().refresh_interval == expected

    @pytest.mark.parametrize("raw", ["60", "soon", "", "-5s", "0", "3000000h"])
    def test_bad_durations_fall_back(self, clean_env, raw):
        clean_env.setenv("NODE_NAME", "n")
        clean_env.setenv("AZ_REFRESH_INTERVAL", raw)
        clean_env.setenv("KUBE_API_TIMEOUT", raw)
        s = load_settings()
        assert s.refresh_interval == 60.0
        assert s.api_timeout == 2.0

    @pytest.mark.parametrize("raw, expected", [
        ("1", True), ("true", True), ("YES", True), ("on", True),
        ("0", False), ("FALSE", False), ("off", False),
        ("maybe", False), (" TRUE ", True), ("True", False), ("Yes", False),
    ])
    def test_access_log_flag(self, clean_env, raw, expected):
        clean_env.setenv("NODE_NAME", "n")
        clean_env.setenv("ACCESS_LOG", raw)
        assert load_settings().access_log is expected

    def test_bad_numbers_fall_back(self, clean_env):
        clean_env.setenv("NODE_NAME", "n")
        clean_env.setenv("KUBE_CLIENT_QPS", "fast")
        clean_env.setenv("KUBE_CLIENT_BURST", "-3")
        clean_env.setenv("LISTEN_PORT", "99999")
        s = load_settings()
        assert s.kube_client_qps == 20.0
        assert s.kube_client_burst == 40
        assert s.listen_port == 8080

    def test_numbers_parsed(self, clean_env):
        clean_env.setenv("NODE_NAME", "n")
        clean_env.setenv("KUBE_CLIENT_QPS", "5.5")
        clean_env.setenv("KUBE_CLIENT_BURST", "10")
        clean_env.setenv("LISTEN_PORT", "9090")
        s = load_settings()
        assert s.kube_client_qps == 5.5
        assert s.kube_client_burst == 10
        assert s.listen_port == 9090

    def test_settings_are_frozen(self, settings):
        with pytest.raises(Exception):
            settings.node_name = "other"  # type: ignore[misc]

    def test_timeout_exceeds_interval(self):
        assert Settings(node_name="n", refresh_interval=1.0, api_timeout=2.0).timeout_exceeds_interval
        assert not Settings(node_name="n", refresh_interval=60.0, api_timeout=2.0).timeout_exceeds_interval

    def test_oversized_numeric_interval_falls_back(self):
        assert Settings(node_name="n", refresh_interval=1e11).refresh_interval == 60.0


# ── clock ──────────────────────────────────────────────────────────────────

class TestClock:
    def test_now_is_utc(self):
        assert get_clock().now().tzinfo is not None

    def test_frozen_clock_set_global(self):
        fixed = datetime(2025, 6, 15, 0, 0, 0, tzinfo=timezone.utc)
        original = get_clock()
        set_clock(Clock().freeze(fixed))
        try:
            assert get_clock().now() == fixed
        finally:
            set_clock(original)

    def test_server_time_has_millis(self):
        dt = datetime(2025, 1, 2, 3, 4, 5, 67000, tzinfo=timezone.utc)
        assert format_server_time(dt) == "2025-01-02T03:04:05.067Z"

    def test_rfc3339(self):
        dt = datetime(2025, 1, 2, 3, 4, 5, 999999, tzinfo=timezone.utc)
        assert format_rfc3339(dt) == "2025-01-02T03:04:05Z"

    def test_rfc3339_absent_is_dash(self):
        assert format_rfc3339(None) == "-"


class TestDurations:
    @pytest.mark.parametrize("text, seconds", [
        ("0", 0.0),
        ("2s", 2.0),
        ("1.5s", 1.5),
        ("1m30s", 90.0),
        ("1h2m3s", 3723.0),
        ("250ms", 0.25),
        ("-3s", -3.0),
        (".5s", 0.5),
    ])
    def test_parse(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "5", "s", "1x", "1m 30s", "abc"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    def test_parse_bounded_by_int64_nanoseconds(self):
        assert parse_duration("2562047h") < MAX_DURATION_SECONDS
        with pytest.raises(ValueError, match="out of range"):
            parse_duration("2562048h")
        with pytest.raises(ValueError, match="out of range"):
            parse_duration("-3000000h")

    @pytest.mark.parametrize("seconds, text", [
        (0, "0s"),
        (2.0, "2s"),
        (1.5, "1.5s"),
        (60.0, "1m0s"),
        (90.0, "1m30s"),
        (3600.0, "1h0m0s"),
        (0.5, "500ms"),
    ])
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text


# ── errors ─────────────────────────────────────────────────────────────────

class TestErrors:
    def test_str_is_user_message(self):
        e = NotFoundError('nodes "worker-9" not found')
        assert str(e) == 'nodes "worker-9" not found'
        assert e.code == "not_found"

    def test_subclasses_share_base(self):
        for cls in (AuthError, NotFoundError, UpstreamError, RateLimitError, ConfigurationError):
            assert issubclass(cls, AzInfoError)

    def test_metadata_and_detail(self):
        e = UpstreamError("timeout", node="worker-1", detail="read timed out after 2s")
        assert e.metadata == {"node": "worker-1"}
        assert e.detail == "read timed out after 2s"

    def test_rate_limit_retry_after_in_metadata(self):
        e = RateLimitError(retry_after=0.25)
        assert e.retry_after == 0.25
        assert e.metadata == {"retry_after": 0.25}


# ── logging ────────────────────────────────────────────────────────────────

class TestRedaction:
    def test_sensitive_keys_are_masked(self):
        out = _redact_processor(None, "info", {"event": "x", "Authorization": "Bearer abc", "node": "w1"})
        assert out["Authorization"] == "[REDACTED]"
        assert out["node"] == "w1"

    def test_bearer_token_in_error_text_is_masked(self):
        out = _redact_processor(
            None, "warning",
            {"event": "az.refresh_failed", "detail": "401 Unauthorized: Bearer eyJhbGci.OiJSUzI1 rejected"},
        )
        assert out["detail"] == "401 Unauthorized: Bearer [REDACTED] rejected"

    def test_plain_values_untouched(self):
        event = {"event": "az.refreshed", "zone": "eu-west-1a"}
        assert _redact_processor(None, "info", dict(event)) == event
