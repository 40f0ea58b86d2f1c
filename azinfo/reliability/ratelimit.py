"""
azinfo.reliability.ratelimit
────────────────────────────
Client-side token bucket for calls to the cluster API (KUBE_CLIENT_QPS /
KUBE_CLIENT_BURST). The Python kubernetes client has no built-in throttle,
so the node lookup takes a token before each request.

A caller waits for a token at most as long as its own deadline; if the
bucket cannot refill in time it raises RateLimitError instead of blocking.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from azinfo.core.errors import RateLimitError


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: float | None = None   # seconds until a token is available


class TokenBucket:
    def __init__(
        self,
        qps: float,
        burst: int,
        *,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if qps <= 0 or burst <= 0:
            raise ValueError("qps and burst must be positive")
        self._qps = qps
        self._burst = burst
        self._monotonic = monotonic
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = monotonic()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self._burst), self._tokens + elapsed * self._qps)
        self._updated = now

    def check(self) -> RateLimitResult:
        """Take a token if one is available; never waits."""
        with self._lock:
            self._refill(self._monotonic())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return RateLimitResult(allowed=True, remaining=int(self._tokens))
            retry_after = (1.0 - self._tokens) / self._qps
            return RateLimitResult(allowed=False, remaining=0, retry_after=retry_after)

    def acquire(self, timeout: float) -> None:
        """
        Wait for a token, up to *timeout* seconds.
        Raises RateLimitError if none becomes available in time.
        """
        deadline = self._monotonic() + timeout
        while True:
            result = self.check()
            if result.allowed:
                return
            wait = result.retry_after or 0.0
            remaining = deadline - self._monotonic()
            if wait > remaining:
                raise RateLimitError(
                    f"client rate limiter: no token within {timeout:g}s",
                    retry_after=wait,
                )
            self._sleep(wait)


__all__ = ["RateLimitResult", "TokenBucket"]
