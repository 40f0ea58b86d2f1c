"""
azinfo.core.config
──────────────────
Typed configuration from the pod environment (downward API + tunables).
Reads .env → environment variables. All fields are typed via Pydantic.

Tunables never fail startup: an unparseable or out-of-range value falls back
to the field default. The one hard requirement is NODE_NAME; without it the
service has nothing to look up, so get_settings() raises ConfigurationError.

Minimal stack: pydantic-settings + python-dotenv
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from azinfo.core.clock import MAX_DURATION_SECONDS, parse_duration
from azinfo.core.errors import ConfigurationError

_TRUE = frozenset({"1", "true", "TRUE", "yes", "YES", "on", "ON"})
_FALSE = frozenset({"0", "false", "FALSE", "no", "NO", "off", "OFF"})


def _fallback(cls: type[BaseSettings], info: ValidationInfo) -> Any:
    return cls.model_fields[info.field_name].default


class Settings(BaseSettings):
    """Identity and tunables, resolved once at startup and frozen afterwards."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ── Identity (downward API) ───────────────────────────────────────────────
    node_name: str = Field(default="", alias="NODE_NAME")
    node_ip: str = Field(default="", alias="NODE_IP")
    pod_name: str = Field(default="", alias="POD_NAME")
    pod_namespace: str = Field(default="", alias="POD_NAMESPACE")
    pod_ip: str = Field(default="", alias="POD_IP")

    # ── Refresh ───────────────────────────────────────────────────────────────
    refresh_interval: float = Field(default=60.0, alias="AZ_REFRESH_INTERVAL")
    api_timeout: float = Field(default=2.0, alias="KUBE_API_TIMEOUT")

    # ── Kubernetes client ─────────────────────────────────────────────────────
    kube_client_qps: float = Field(default=20.0, alias="KUBE_CLIENT_QPS")
    kube_client_burst: int = Field(default=40, alias="KUBE_CLIENT_BURST")

    # ── HTTP ──────────────────────────────────────────────────────────────────
    listen_port: int = Field(default=8080, alias="LISTEN_PORT")
    access_log: bool = Field(default=False, alias="ACCESS_LOG")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")

    @field_validator("refresh_interval", "api_timeout", mode="before")
    @classmethod
    def parse_go_duration(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            seconds = float(v)
        else:
            try:
                seconds = parse_duration(str(v))
            except ValueError:
                return _fallback(cls, info)
        if seconds <= 0 or seconds > MAX_DURATION_SECONDS:
            return _fallback(cls, info)
        return seconds

    @field_validator("access_log", "metrics_enabled", mode="before")
    @classmethod
    def parse_flag(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, bool):
            return v
        text = str(v).strip()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        return _fallback(cls, info)

    @field_validator("kube_client_qps", mode="before")
    @classmethod
    def parse_qps(cls, v: Any, info: ValidationInfo) -> Any:
        try:
            qps = float(v)
        except (TypeError, ValueError):
            return _fallback(cls, info)
        return qps if qps > 0 else _fallback(cls, info)

    @field_validator("kube_client_burst", "listen_port", mode="before")
    @classmethod
    def parse_positive_int(cls, v: Any, info: ValidationInfo) -> Any:
        try:
            n = int(str(v).strip())
        except (TypeError, ValueError):
            return _fallback(cls, info)
        if n <= 0 or (info.field_name == "listen_port" and n > 65535):
            return _fallback(cls, info)
        return n

    @field_validator("node_name", "node_ip", "pod_name", "pod_namespace", "pod_ip")
    @classmethod
    def strip_identity(cls, v: str) -> str:
        return v.strip()

    @property
    def timeout_exceeds_interval(self) -> bool:
        """True when a lookup could still be running when the next tick fires."""
        return self.api_timeout >= self.refresh_interval


def load_settings(**overrides: Any) -> Settings:
    """
    Build Settings from the environment and enforce the node identity.
    Raises ConfigurationError when NODE_NAME is absent.
    """
    settings = Settings(**overrides)
    if not settings.node_name:
        raise ConfigurationError(
            "NODE_NAME environment variable not set",
            detail="NODE_NAME must be injected via the downward API (spec.nodeName)",
        )
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the process settings. Cached after the first successful call.
    Call _reset_settings() in tests to pick up new env vars.
    """
    return load_settings()


def _reset_settings() -> None:
    """Clear the settings cache (tests)."""
    get_settings.cache_clear()


__all__ = ["Settings", "load_settings", "get_settings"]
