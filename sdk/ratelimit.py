"""Sliding-window request limiter for outbound Bot API calls."""

import asyncio
import time
from collections import deque
from typing import Callable


class RateLimiter:
    """Allow at most *max_requests* calls per *window* seconds.

    :meth:`wait_if_needed` is awaited before every request.  When the window
    is full it sleeps until the oldest request leaves it.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    async def wait_if_needed(self) -> float:
        """Block until a request slot is free; return the seconds waited."""
        async with self._lock:
            now = self._clock()
            self._evict(now)
            waited = 0.0
            if len(self._timestamps) >= self.max_requests:
                waited = self.window - (now - self._timestamps[0])
                if waited > 0:
                    await asyncio.sleep(waited)
                now = self._clock()
                self._evict(now)
            self._timestamps.append(now)
            return max(waited, 0.0)

    @property
    def pending(self) -> int:
        """Number of requests currently counted in the window."""
        self._evict(self._clock())
        return len(self._timestamps)
