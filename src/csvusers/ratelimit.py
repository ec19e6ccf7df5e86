"""Sliding-window limiter for heavy operations."""

import threading
import time
from collections import defaultdict, deque
from typing import Callable

from csvusers.errors import RateLimitExceeded


class SlidingWindowRateLimiter:
    """Allow at most ``max_calls`` per ``window_seconds`` for each key.

    State lives on the instance; create one per deployment and pass it to the
    operations it should guard. ``clock`` must be monotonic and return seconds.
    """

    def __init__(
        self,
        max_calls: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_calls = max_calls
        self._window = window_seconds
        self._clock = clock
        self._calls: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def acquire(self, key: str = "default") -> None:
        """Record a call for ``key`` or raise RateLimitExceeded."""
        with self._lock:
            now = self._clock()
            calls = self._calls[key]
            while calls and now - calls[0] >= self._window:
                calls.popleft()
            if len(calls) >= self._max_calls:
                raise RateLimitExceeded(key, self._window - (now - calls[0]))
            calls.append(now)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._calls.clear()
            else:
                self._calls.pop(key, None)
