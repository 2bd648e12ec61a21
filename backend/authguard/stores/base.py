"""
Storage contracts for rate limit and failure counters.

Every backend must perform each operation as one atomic step on the storage
side. Callers never read a value and write it back.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CounterResult:
    """Count after an increment and whether it is within the limit."""

    count: int
    allowed: bool


class CounterStore(Protocol):
    async def increment_or_reset(
        self,
        subject_key: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
    ) -> CounterResult:
        """
        Count one request against the (subject_key, endpoint) window.

        Starts a new window at count 1 when none exists or the current one
        has expired, otherwise increments the active window.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        ...


class FailureCounterStore(Protocol):
    async def get_failures(self, account: str) -> int:
        """Current failure count, 0 when the account has no record."""
        ...

    async def increment_failures(self, account: str) -> int:
        """Add one failure and return the new count."""
        ...

    async def reset_failures(self, account: str) -> None:
        """Set the failure count back to 0."""
        ...
