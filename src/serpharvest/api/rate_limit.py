"""Fixed-window per-client request limiter."""

from __future__ import annotations

import threading
import time

from fastapi import HTTPException, Request


class FixedWindowRateLimiter:
    """Allow at most *limit* requests per client per *window_sec* window.

    Args:
        limit: Requests allowed per window. ``0`` disables limiting.
        window_sec: Window length in seconds.
        clock: Monotonic time source (overridable in tests).
    """

    def __init__(self, limit: int, window_sec: int, clock=time.monotonic) -> None:
        self.limit = limit
        self.window_sec = window_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_sweep = clock() + window_sec

    @property
    def tracked_clients(self) -> int:
        """Number of clients with a tracked window."""
        return len(self._windows)

    def hit(self, key: str) -> bool:
        """Record one request for *key*; return ``False`` if it is over the limit."""
        if self.limit <= 0:
            return True
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._evict_expired(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_sec:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count <= self.limit

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock.
        self._windows = {k: v for k, v in self._windows.items() if now - v[0] < self.window_sec}
        self._next_sweep = now + self.window_sec


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: reject the request with 429 when over the limit."""
    limiter: FixedWindowRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    client = request.client.host if request.client else "unknown"
    if not limiter.hit(client):
        raise HTTPException(status_code=429, detail="Too many requests, please try again later.")
