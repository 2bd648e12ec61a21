from authguard.models.account_failure import AccountFailure
from authguard.models.rate_limit_counter import RateLimitCounter

__all__ = [
    "AccountFailure",
    "RateLimitCounter",
]
