"""
Fixed-window rate limiting for the unauthenticated auth endpoints.

Fails open: when the counter store errors or does not answer in time the
request is allowed and the fault is logged.
"""

import asyncio
import logging
from dataclasses import dataclass

from authguard.core.config import EndpointLimit, settings
from authguard.core.exceptions import StoreUnavailableError
from authguard.core.outcomes import RATE_LIMITED_MESSAGE
from authguard.stores.base import CounterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_message: str | None = None


class RateLimiter:
    """Per-caller, per-endpoint request limiter over a shared CounterStore."""

    def __init__(
        self,
        store: CounterStore,
        endpoint_limits: dict[str, EndpointLimit] | None = None,
        timeout_seconds: float | None = None,
    ):
        self.store = store
        self.endpoint_limits = dict(
            endpoint_limits if endpoint_limits is not None else settings.ENDPOINT_LIMITS
        )
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.STORE_TIMEOUT_SECONDS
        )

    async def allow(
        self,
        subject_key: str,
        endpoint: str,
        limit: int | None = None,
        window_seconds: int | None = None,
    ) -> RateLimitResult:
        """
        Count this request and decide whether it may proceed.

        Args:
            subject_key: Opaque caller identifier (normally the client IP)
            endpoint: Protected endpoint name
            limit: Maximum requests per window, defaults to the endpoint table
            window_seconds: Window length, defaults to the endpoint table

        Returns:
            RateLimitResult, with a generic retry message when denied

        Raises:
            KeyError: If no limit is given and the endpoint is not configured
        """
        if limit is None or window_seconds is None:
            configured = self.endpoint_limits[endpoint]
            limit = configured.limit if limit is None else limit
            window_seconds = configured.window_seconds if window_seconds is None else window_seconds

        try:
            result = await asyncio.wait_for(
                self.store.increment_or_reset(subject_key, endpoint, limit, window_seconds),
                timeout=self.timeout_seconds,
            )
        except StoreUnavailableError as e:
            logger.warning("Rate limit check failed for %s, allowing request: %s", endpoint, e)
            return RateLimitResult(allowed=True)
        except TimeoutError:
            logger.warning(
                "Rate limit check timed out after %.1fs for %s, allowing request",
                self.timeout_seconds,
                endpoint,
            )
            return RateLimitResult(allowed=True)

        if not result.allowed:
            logger.info("Rate limit exceeded on %s (count=%d)", endpoint, result.count)
            return RateLimitResult(allowed=False, retry_message=RATE_LIMITED_MESSAGE)

        return RateLimitResult(allowed=True)
