import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from authguard.api.auth import router as auth_router
from authguard.api.deps import build_policy, build_stores
from authguard.core.config import APP_VERSION, settings
from authguard.core.errors import HTTPError, http_error_handler
from authguard.core.logging import setup_logging
from authguard.core.redis import close_redis
from authguard.services.auth_policy import AuthAttemptPolicy
from authguard.services.captcha import ChallengeVerifier, RecaptchaVerifier
from authguard.services.credentials import CredentialVerifier

logger = logging.getLogger(__name__)


def create_app(
    credentials: CredentialVerifier | None = None,
    challenge_verifier: ChallengeVerifier | None = None,
    auth_policy: AuthAttemptPolicy | None = None,
) -> FastAPI:
    """
    Build the FastAPI application around a credential verification service.

    Pass either a CredentialVerifier (stores are built from settings on
    startup) or a fully built AuthAttemptPolicy.
    """
    if credentials is None and auth_policy is None:
        raise ValueError("create_app needs a CredentialVerifier or an AuthAttemptPolicy")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application startup and shutdown."""
        setup_logging()

        if auth_policy is not None:
            app.state.auth_policy = auth_policy
        else:
            counter_store, failure_store = await build_stores(settings)
            app.state.auth_policy = build_policy(
                counter_store,
                failure_store,
                credentials,
                challenge_verifier=challenge_verifier,
                config=settings,
            )
            logger.info(
                "Auth policy ready (store=%s, challenge threshold=%d)",
                settings.COUNTER_STORE_BACKEND,
                settings.CHALLENGE_THRESHOLD,
            )

        yield

        # Shutdown
        verifier = app.state.auth_policy.challenge_verifier
        if isinstance(verifier, RecaptchaVerifier):
            await verifier.close()
        await close_redis()

    app = FastAPI(
        title=settings.APP_NAME,
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.add_exception_handler(HTTPError, http_error_handler)
    app.include_router(auth_router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": APP_VERSION}

    return app
