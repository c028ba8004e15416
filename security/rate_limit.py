"""In-process request throttling with time-bucketed expiry.

Stores are plain objects created by the app factory and handed to the
request hooks, so tests and workers each get their own state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# How often expired windows are swept out (seconds)
_PURGE_INTERVAL = 5 * 60


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_in: float  # seconds until the window resets


class _WindowStore:
    """Keyed counters that expire at the end of their window."""

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_purge = clock() + _PURGE_INTERVAL

    def __len__(self) -> int:
        return len(self._windows)

    def _current(self, key: str, now: float) -> _Window | None:
        """Live window for ``key``, or None if absent/expired. Caller holds the lock."""
        window = self._windows.get(key)
        if window is None or window.reset_at < now:
            return None
        return window

    def _maybe_purge(self, now: float) -> None:
        if now < self._next_purge:
            return
        self._next_purge = now + _PURGE_INTERVAL
        self._purge(now)

    def _purge(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if window.reset_at < now]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Purged %d expired rate limit windows", len(expired))
        return len(expired)

    def purge_expired(self) -> int:
        """Drop every expired window. Returns how many were removed."""
        with self._lock:
            return self._purge(self._clock())

    def _count(self, key: str, limit: int) -> RateLimitResult:
        """Check ``key`` against ``limit`` and count the hit, under one lock."""
        with self._lock:
            now = self._clock()
            self._maybe_purge(now)

            window = self._current(key, now)
            if window is None:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitResult(True, limit - 1, self.window_seconds)

            if window.count >= limit:
                return RateLimitResult(False, 0, window.reset_at - now)

            window.count += 1
            return RateLimitResult(True, limit - window.count, window.reset_at - now)


class RateLimiter(_WindowStore):
    """Fixed-window request limiter: ``max_requests`` per key per window."""

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(window_seconds, clock)
        self.max_requests = max_requests

    def check(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is allowed."""
        return self._count(key, self.max_requests)


class LoginThrottle(_WindowStore):
    """Counts login attempts per client; locks the client out after too many.

    A successful login clears the count, so only failures accumulate.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        lockout_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(lockout_seconds, clock)
        self.max_attempts = max_attempts

    def attempt(self, key: str) -> RateLimitResult:
        """Count a login attempt for ``key`` and report whether it may proceed.

        ``remaining`` is how many further attempts are left if this one fails.
        """
        result = self._count(key, self.max_attempts)
        if not result.allowed:
            logger.warning("Login locked out for %s", key)
        return result

    def clear(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)
