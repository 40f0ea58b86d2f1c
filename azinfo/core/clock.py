"""
azinfo.core.clock
─────────────────
Mockable time source plus the time formats the service speaks.

Wall-clock reads (``last_update``, the info page's server time) go through a
Clock so tests can freeze them. Durations in the environment use Go's
duration syntax (``90s``, ``1m30s``, ``500ms``) because that is what the
deployment manifests already carry.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable


# ── Clock implementation ───────────────────────────────────────────────────

class Clock:
    """Mockable UTC clock. Pass ``now_fn`` to control time in tests."""

    def __init__(self, now_fn: Callable[[], datetime] | None = None) -> None:
        self._now_fn = now_fn or (lambda: datetime.now(tz=timezone.utc))

    def now(self) -> datetime:
        """Return the current UTC datetime."""
        return self._now_fn()

    def freeze(self, dt: datetime) -> "Clock":
        """Return a new Clock frozen at the given datetime."""
        return Clock(now_fn=lambda: dt)


_clock = Clock()


def get_clock() -> Clock:
    """Return the process clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Replace the process clock (use in tests)."""
    global _clock
    _clock = clock


# ── Timestamp formats ──────────────────────────────────────────────────────

def format_server_time(dt: datetime) -> str:
    """Millisecond UTC timestamp, e.g. ``2025-01-01T12:00:00.123Z``."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def format_rfc3339(dt: datetime | None) -> str:
    """Second-precision RFC 3339, or ``-`` when there is no timestamp."""
    if dt is None:
        return "-"
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ── Go-style durations ─────────────────────────────────────────────────────

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_UNITS = "ns|us|µs|μs|ms|s|m|h"
_DURATION_RE = re.compile(rf"(?:(?:\d+\.?\d*|\.\d+)(?:{_UNITS}))+")
_PART_RE = re.compile(rf"(\d+\.?\d*|\.\d+)({_UNITS})")

# Largest duration an int64 nanosecond count can hold.
MAX_DURATION_SECONDS = 9223372036.854775807


def parse_duration(text: str) -> float:
    """
    Parse a Go duration string into seconds.

    Accepts an optional sign and a sequence of decimal numbers each with a
    unit suffix. A bare ``0`` is allowed; any other unitless number is not.
    Raises ValueError on malformed input or a magnitude past MAX_DURATION_SECONDS.
    """
    s = text.strip()
    sign = 1.0
    if s[:1] in ("+", "-"):
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return 0.0
    if not s or not _DURATION_RE.fullmatch(s):
        raise ValueError(f"invalid duration {text!r}")
    total = sum(float(num) * _UNIT_SECONDS[unit] for num, unit in _PART_RE.findall(s))
    if total > MAX_DURATION_SECONDS:
        raise ValueError(f"invalid duration {text!r}: out of range")
    return sign * total


def _trim(value: float) -> str:
    return f"{value:.9f}".rstrip("0").rstrip(".")


def format_duration(seconds: float) -> str:
    """Render seconds the way Go's ``Duration.String`` does (``2s``, ``1m30s``)."""
    if seconds == 0:
        return "0s"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    if seconds < 1:
        if seconds < 1e-6:
            return f"{sign}{_trim(seconds * 1e9)}ns"
        if seconds < 1e-3:
            return f"{sign}{_trim(seconds * 1e6)}µs"
        return f"{sign}{_trim(seconds * 1e3)}ms"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = f"{_trim(secs)}s"
    if hours:
        return f"{sign}{int(hours)}h{int(minutes)}m{out}"
    if minutes:
        return f"{sign}{int(minutes)}m{out}"
    return f"{sign}{out}"


__all__ = [
    "Clock",
    "get_clock",
    "set_clock",
    "format_server_time",
    "format_rfc3339",
    "parse_duration",
    "format_duration",
    "MAX_DURATION_SECONDS",
]
