"""Dependency wiring for the auth endpoints."""

from fastapi import Request

from authguard.core.config import Settings, settings
from authguard.core.redis import get_redis
from authguard.services.auth_policy import AuthAttemptPolicy
from authguard.services.captcha import ChallengeVerifier, RecaptchaVerifier
from authguard.services.challenge import ChallengeGate
from authguard.services.credentials import CredentialVerifier
from authguard.services.rate_limit import RateLimiter
from authguard.stores.base import CounterStore, FailureCounterStore


async def build_stores(config: Settings = settings) -> tuple[CounterStore, FailureCounterStore]:
    """Create the counter stores selected by COUNTER_STORE_BACKEND."""
    if config.COUNTER_STORE_BACKEND == "redis":
        from authguard.stores.redis import RedisCounterStore, RedisFailureCounterStore

        client = await get_redis()
        return RedisCounterStore(client), RedisFailureCounterStore(client)

    if config.COUNTER_STORE_BACKEND == "memory":
        from authguard.stores.memory import MemoryCounterStore, MemoryFailureCounterStore

        return MemoryCounterStore(), MemoryFailureCounterStore()

    from authguard.db.session import async_session_maker
    from authguard.stores.sql import SqlCounterStore, SqlFailureCounterStore

    return SqlCounterStore(async_session_maker), SqlFailureCounterStore(async_session_maker)


def build_policy(
    counter_store: CounterStore,
    failure_store: FailureCounterStore,
    credentials: CredentialVerifier,
    challenge_verifier: ChallengeVerifier | None = None,
    config: Settings = settings,
) -> AuthAttemptPolicy:
    return AuthAttemptPolicy(
        rate_limiter=RateLimiter(
            counter_store,
            endpoint_limits=config.ENDPOINT_LIMITS,
            timeout_seconds=config.STORE_TIMEOUT_SECONDS,
        ),
        challenge_gate=ChallengeGate(
            failure_store,
            threshold=config.CHALLENGE_THRESHOLD,
            timeout_seconds=config.STORE_TIMEOUT_SECONDS,
        ),
        credentials=credentials,
        challenge_verifier=challenge_verifier or RecaptchaVerifier(
            secret_key=config.RECAPTCHA_SECRET_KEY,
            verify_url=config.RECAPTCHA_VERIFY_URL,
            timeout=config.RECAPTCHA_TIMEOUT_SECONDS,
        ),
        register_requires_challenge=config.REGISTER_REQUIRES_CHALLENGE,
        register_min_response_seconds=config.REGISTER_MIN_RESPONSE_SECONDS,
    )


def get_policy(request: Request) -> AuthAttemptPolicy:
    return request.app.state.auth_policy
