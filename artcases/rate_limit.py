from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Optional


class RateLimiter:
    """Sliding one-minute window; safe to share between worker threads."""

    def __init__(
        self,
        rpm: int = 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.window = 60.0
        self.rpm = max(1, rpm)
        self.calls: deque[float] = deque()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = self._clock()
            while self.calls and now - self.calls[0] > self.window:
                self.calls.popleft()
            if len(self.calls) >= self.rpm:
                sleep_for = self.window - (now - self.calls[0]) + 0.01
                self._sleep(max(0.0, sleep_for))
                self.calls.popleft()
            self.calls.append(self._clock())


class SpacedLimiter:
    """Leaky bucket of size one: every acquire() is at least ``60/rpm`` s
    after the previous one. The first acquire waits a full interval too.
    """

    def __init__(
        self,
        rpm: int = 50,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / self.rpm
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def acquire(self) -> float:
        """Block until the next call is allowed; returns seconds slept."""
        now = self._clock()
        due = (self._last if self._last is not None else now) + self.interval
        slept = max(0.0, due - now)
        if slept > 0:
            self._sleep(slept)
        self._last = self._clock()
        return slept
