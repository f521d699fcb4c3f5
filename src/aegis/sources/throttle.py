"""
Request pacing and response caching for the remote sources.

The wiki's API terms allow one standard request every 2 seconds and one
render (action=parse) every 30 seconds. RateLimiter keeps a separate
clock per operation class and serialises callers of the same class, so
concurrent callers still respect the interval.

Both classes take their clock (and the limiter its sleep) as arguments,
which keeps tests free of real waiting.
"""

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

DEFAULT_INTERVALS = {"standard": 2.0, "parse": 30.0}


class RateLimiter:
    """
    Minimum-interval limiter keyed by operation class.

    Usage:
        limiter = RateLimiter({"standard": 2.0, "parse": 30.0})
        await limiter.wait("parse")
        ...  # perform the request
    """

    def __init__(
        self,
        intervals: Optional[dict[str, float]] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.intervals = dict(intervals if intervals is not None else DEFAULT_INTERVALS)
        self._clock = clock
        self._sleep = sleep
        self._last: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, op_class: str) -> asyncio.Lock:
        if op_class not in self._locks:
            self._locks[op_class] = asyncio.Lock()
        return self._locks[op_class]

    async def wait(self, op_class: str = "standard") -> float:
        """
        Wait until a request of ``op_class`` may go out, then stamp it.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        interval = self.intervals.get(op_class, self.intervals.get("standard", 0.0))
        async with self._lock(op_class):
            delay = 0.0
            last = self._last.get(op_class)
            if last is not None:
                delay = last + interval - self._clock()
            if delay > 0:
                logger.debug("Rate limit (%s): waiting %.2fs", op_class, delay)
                await self._sleep(delay)
            else:
                delay = 0.0
            self._last[op_class] = self._clock()
            return delay


class ResponseCache:
    """
    In-process TTL cache keyed on the full request parameter set.

    Keys are the sorted JSON of the parameters, so two calls with the same
    parameters in a different order share an entry.
    """

    def __init__(self, ttl: float = 300.0, clock: Clock = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    @staticmethod
    def key(params: dict[str, Any]) -> str:
        return json.dumps(params, sort_keys=True, default=str)

    def get(self, params: dict[str, Any]) -> Optional[Any]:
        key = self.key(params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, params: dict[str, Any], value: Any) -> None:
        self._entries[self.key(params)] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
