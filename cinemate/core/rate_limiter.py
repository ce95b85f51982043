"""
Fixed-window rate limiter for outbound API calls.

One limiter instance exists per upstream service. Callers queue on an
asyncio lock for admission; once admitted, operations run concurrently.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Admit at most `max_requests` operations per `window_seconds`.

    The clock and sleep functions are injectable so tests can drive the
    window deterministically.

    Usage:
        limiter = RateLimiter(max_requests=40, window_seconds=1.0, name="tmdb")
        movie = await limiter.execute(lambda: client.get(url), "search:Dune")
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        name: str = "upstream",
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._sleep = sleep

        self._request_count = 0
        self._window_start = clock()
        self._waiting = 0
        self._lock: Optional[asyncio.Lock] = None

    @property
    def request_count(self) -> int:
        """Requests admitted in the current window."""
        return self._request_count

    @property
    def window_start(self) -> float:
        """Clock reading at which the current window opened."""
        return self._window_start

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the loop that first uses it
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _acquire_slot(self, label: str) -> None:
        self._waiting += 1
        try:
            async with self._get_lock():
                while True:
                    now = self._clock()
                    elapsed = now - self._window_start
                    if elapsed >= self.window_seconds:
                        self._request_count = 0
                        self._window_start = now
                        elapsed = 0.0

                    if self._request_count < self.max_requests:
                        self._request_count += 1
                        logger.debug(
                            "[%s] Executing request (%d/%d) for %s, %d queued",
                            self.name, self._request_count, self.max_requests,
                            label, self._waiting - 1,
                        )
                        return

                    wait_time = self.window_seconds - elapsed
                    logger.info(
                        "[%s] Rate limit reached, waiting %.3fs for %s (%d queued)",
                        self.name, wait_time, label, self._waiting - 1,
                    )
                    await self._sleep(wait_time)
        finally:
            self._waiting -= 1

    async def execute(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        """
        Wait for a slot in the current window, then run the operation.

        Args:
            operation: Zero-argument callable returning an awaitable
            label: Short description used in log lines

        Returns:
            The operation's result; its exceptions propagate unchanged
        """
        await self._acquire_slot(label)
        return await operation()

    def stats(self) -> Dict[str, Any]:
        """Snapshot of the limiter state for health reporting."""
        return {
            "name": self.name,
            "maxRequests": self.max_requests,
            "windowSeconds": self.window_seconds,
            "requestsInWindow": self._request_count,
            "queued": self._waiting,
        }
