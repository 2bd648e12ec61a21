"""
In-process counter stores for single-instance deployments and tests.

Counts live in this process only, so running more than one worker against
these stores gives each worker its own limits.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta

from authguard.stores.base import Clock, CounterResult, utc_now

logger = logging.getLogger(__name__)

# Increments between sweeps of expired windows
DEFAULT_SWEEP_EVERY = 1000


class MemoryCounterStore:
    """
    Fixed-window counters guarded by one lock per key.

    Subject keys come from request headers, so expired windows are swept every
    sweep_every increments to keep the key set bounded by live windows.
    """

    def __init__(self, clock: Clock = utc_now, sweep_every: int = DEFAULT_SWEEP_EVERY):
        self._clock = clock
        self._sweep_every = sweep_every
        self._windows: dict[tuple[str, str], tuple[int, datetime]] = {}
        self._locks: defaultdict[tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)
        self._max_window_seconds = 0
        self._increments = 0

    async def increment_or_reset(
        self,
        subject_key: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
    ) -> CounterResult:
        key = (subject_key, endpoint)
        async with self._locks[key]:
            now = self._clock()
            current = self._windows.get(key)

            if current is None or (now - current[1]).total_seconds() >= window_seconds:
                count, window_start = 1, now
            else:
                count, window_start = current[0] + 1, current[1]

            self._windows[key] = (count, window_start)

        self._max_window_seconds = max(self._max_window_seconds, window_seconds)
        self._increments += 1
        if self._increments % self._sweep_every == 0:
            await self.purge_expired(self._max_window_seconds)

        return CounterResult(count=count, allowed=count <= limit)

    async def purge_expired(self, older_than_seconds: int) -> int:
        """Drop windows (and their locks) that started before the cutoff. Returns count dropped."""
        cutoff = self._clock() - timedelta(seconds=older_than_seconds)
        expired = [key for key, (_, start) in self._windows.items() if start < cutoff]
        for key in expired:
            del self._windows[key]
            self._locks.pop(key, None)

        if expired:
            logger.debug("Purged %d expired rate limit windows", len(expired))
        return len(expired)


class MemoryFailureCounterStore:
    """Per-account failure counters guarded by one lock per account."""

    def __init__(self):
        self._failures: dict[str, int] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_failures(self, account: str) -> int:
        return self._failures.get(account, 0)

    async def increment_failures(self, account: str) -> int:
        async with self._locks[account]:
            count = self._failures.get(account, 0) + 1
            self._failures[account] = count
        return count

    async def reset_failures(self, account: str) -> None:
        async with self._locks[account]:
            self._failures.pop(account, None)
        self._locks.pop(account, None)
