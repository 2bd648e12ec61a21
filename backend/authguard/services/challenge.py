"""
Adaptive challenge gate driven by per-account authentication failures.

An account moves to ELEVATED once its failure count reaches the threshold and
stays there until a successful authentication resets the count. Unlike the rate
limiter, the gate fails closed: if the count cannot be read, a challenge is
required.
"""

import asyncio
import logging

from authguard.core.config import settings
from authguard.core.exceptions import StoreUnavailableError
from authguard.core.logging import mask_account
from authguard.stores.base import FailureCounterStore

logger = logging.getLogger(__name__)


def normalize_account(account: str) -> str:
    """Canonical form of an account identifier (emails are case-insensitive)."""
    return account.strip().lower()


class ChallengeGate:
    def __init__(
        self,
        store: FailureCounterStore,
        threshold: int | None = None,
        timeout_seconds: float | None = None,
    ):
        self.store = store
        self.threshold = threshold if threshold is not None else settings.CHALLENGE_THRESHOLD
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.STORE_TIMEOUT_SECONDS
        )

    async def _with_timeout(self, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except TimeoutError as e:
            raise StoreUnavailableError(f"timed out after {self.timeout_seconds}s") from e

    async def requires_challenge(self, account: str) -> bool:
        """Whether the next attempt for this account must carry a verified challenge token."""
        account = normalize_account(account)
        try:
            count = await self._with_timeout(self.store.get_failures(account))
        except StoreUnavailableError as e:
            logger.warning(
                "Failure counter unavailable for %s, requiring challenge: %s",
                mask_account(account),
                e,
            )
            return True
        return count >= self.threshold

    async def on_failure(self, account: str) -> int:
        """
        Record one failed authentication.

        Returns:
            The new failure count

        Raises:
            StoreUnavailableError: If the counter could not be updated
        """
        account = normalize_account(account)
        count = await self._with_timeout(self.store.increment_failures(account))
        if count == self.threshold:
            logger.info("Challenge now required for %s after %d failures", mask_account(account), count)
        return count

    async def on_success(self, account: str) -> None:
        """
        Clear the failure count after a successful authentication.

        Raises:
            StoreUnavailableError: If the counter could not be reset
        """
        await self._with_timeout(self.store.reset_failures(normalize_account(account)))
