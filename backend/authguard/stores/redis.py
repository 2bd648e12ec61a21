"""
Redis-backed counter stores.

The fixed window runs as a Lua script so the increment and the expiry are one
atomic step on the Redis server, which keeps counts correct across workers.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from authguard.core.exceptions import StoreUnavailableError
from authguard.stores.base import CounterResult

logger = logging.getLogger(__name__)

# Key prefixes
WINDOW_KEY_PREFIX = "ratelimit:fw:"
FAILURE_KEY_PREFIX = "authfail:"

# KEYS[1] = counter key, ARGV[1] = window length in milliseconds
FIXED_WINDOW_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 or redis.call('PTTL', KEYS[1]) < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
return current
"""

_STORE_ERRORS = (RedisError, OSError)


def window_key(subject_key: str, endpoint: str) -> str:
    return f"{WINDOW_KEY_PREFIX}{endpoint}:{subject_key}"


def failure_key(account: str) -> str:
    return f"{FAILURE_KEY_PREFIX}{account}"


class RedisCounterStore:
    """Fixed-window request counters as expiring Redis integers."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._script = client.register_script(FIXED_WINDOW_SCRIPT)

    async def increment_or_reset(
        self,
        subject_key: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
    ) -> CounterResult:
        try:
            count = await self._script(
                keys=[window_key(subject_key, endpoint)],
                args=[window_seconds * 1000],
            )
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

        count = int(count)
        return CounterResult(count=count, allowed=count <= limit)


class RedisFailureCounterStore:
    """Per-account failure counters. Keys never expire; only a success clears them."""

    def __init__(self, client: redis.Redis):
        self._client = client

    async def get_failures(self, account: str) -> int:
        try:
            value = await self._client.get(failure_key(account))
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e
        return int(value) if value is not None else 0

    async def increment_failures(self, account: str) -> int:
        try:
            return int(await self._client.incr(failure_key(account)))
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

    async def reset_failures(self, account: str) -> None:
        try:
            await self._client.delete(failure_key(account))
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e
