"""Fixed-window limiter guarding the publish endpoint."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import threading
import time


@dataclass(slots=True)
class FixedWindowRateLimiter:
    """Allow at most ``limit`` hits per key in each ``window_seconds`` window.

    A ``limit`` of zero disables limiting. Counters reset when a new window
    starts; callers over the limit are rejected rather than delayed.
    """

    limit: int
    window_seconds: float = 60.0
    clock: Callable[[], float] = field(default=time.monotonic)
    _windows: dict[str, tuple[float, int]] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def hit(self, key: str) -> bool:
        """Record a request for ``key`` and return ``True`` when it is allowed."""

        if not self.enabled:
            return True

        now = self.clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.limit:
                self._windows[key] = (started, count)
                return False
            self._windows[key] = (started, count + 1)
            self._prune(now)
            return True

    def retry_after(self, key: str) -> int:
        """Return whole seconds until ``key``'s current window ends."""

        with self._lock:
            started, _ = self._windows.get(key, (self.clock(), 0))
        remaining = self.window_seconds - (self.clock() - started)
        return max(1, int(remaining + 0.999))

    def _prune(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]
