"""
Auth attempt policy.

Runs each protected request as a strict pipeline:

    rate limit -> challenge gate -> credential verification -> gate update

Every stage can end the attempt, and nothing after a rejecting stage runs.
Callers only receive an AttemptResult, whose message is derived from the
outcome kind, so credential failure causes never reach a response.

Only failures reported by the credential service count towards the challenge
threshold. Attempts stopped by the rate limiter or the challenge check leave
the failure counter untouched.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from authguard.core.config import (
    ENDPOINT_CHALLENGE_VERIFY,
    ENDPOINT_LOGIN,
    ENDPOINT_REGISTER,
    settings,
)
from authguard.core.exceptions import StoreUnavailableError
from authguard.core.logging import mask_account
from authguard.core.outcomes import AttemptOutcome, AttemptResult, Flow
from authguard.schemas.auth import RegisterRequest
from authguard.services.captcha import ChallengeVerifier
from authguard.services.challenge import ChallengeGate
from authguard.services.credentials import CredentialVerifier
from authguard.services.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class AuthAttemptPolicy:
    def __init__(
        self,
        rate_limiter: RateLimiter,
        challenge_gate: ChallengeGate,
        credentials: CredentialVerifier,
        challenge_verifier: ChallengeVerifier,
        register_requires_challenge: bool | None = None,
        register_min_response_seconds: float | None = None,
    ):
        self.rate_limiter = rate_limiter
        self.challenge_gate = challenge_gate
        self.credentials = credentials
        self.challenge_verifier = challenge_verifier
        self.register_requires_challenge = (
            register_requires_challenge
            if register_requires_challenge is not None
            else settings.REGISTER_REQUIRES_CHALLENGE
        )
        self.register_min_response_seconds = (
            register_min_response_seconds
            if register_min_response_seconds is not None
            else settings.REGISTER_MIN_RESPONSE_SECONDS
        )

    async def login(
        self,
        subject_key: str,
        email: str,
        password: str,
        challenge_token: str | None = None,
    ) -> AttemptResult:
        """
        Run one login attempt.

        Args:
            subject_key: Caller identifier from get_client_ip
            email: Account identifier
            password: Secret to verify
            challenge_token: CAPTCHA token, needed once the account is elevated

        Returns:
            AttemptResult with outcome RATE_LIMITED, CHALLENGE_REQUIRED,
            CHALLENGE_FAILED, INVALID_CREDENTIALS, INTERNAL_ERROR or SUCCESS
        """
        flow = Flow.LOGIN
        try:
            limit = await self.rate_limiter.allow(subject_key, ENDPOINT_LOGIN)
            if not limit.allowed:
                return AttemptResult(AttemptOutcome.RATE_LIMITED, flow)

            if await self.challenge_gate.requires_challenge(email):
                rejected = await self._check_challenge_token(challenge_token, flow)
                if rejected is not None:
                    return rejected

            verification = await self.credentials.verify(email, password)
        except Exception:
            logger.exception("Unexpected error during login for %s", mask_account(email))
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)

        if not verification.ok:
            logger.info("Login failed for %s: %s", mask_account(email), verification.cause.value)
            return await self._record_failure(email)

        try:
            await self.challenge_gate.on_success(email)
        except StoreUnavailableError as e:
            logger.error("Could not reset failure counter for %s: %s", mask_account(email), e)
        except Exception:
            logger.exception("Unexpected error resetting failure counter for %s", mask_account(email))
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)

        return AttemptResult(AttemptOutcome.SUCCESS, flow)

    async def register(
        self,
        subject_key: str,
        email: str,
        password: str,
        profile: dict[str, Any] | None = None,
        challenge_token: str | None = None,
    ) -> AttemptResult:
        """
        Run one registration attempt with already-validated fields.

        Every rejection from the credential service, including an existing
        account, comes back as INVALID_CREDENTIALS with the same message.
        Results past the rate limit are held until register_min_response_seconds
        have passed so response time does not reveal the cause.
        """
        flow = Flow.REGISTER
        try:
            limit = await self.rate_limiter.allow(subject_key, ENDPOINT_REGISTER)
        except Exception:
            logger.exception("Unexpected error during registration for %s", mask_account(email))
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)
        if not limit.allowed:
            return AttemptResult(AttemptOutcome.RATE_LIMITED, flow)

        started = asyncio.get_running_loop().time()
        result = await self._create_account(email, password, profile or {}, challenge_token)
        await self._pad_response(started)
        return result

    async def register_payload(self, subject_key: str, payload: Mapping[str, Any]) -> AttemptResult:
        """
        Run one registration attempt from an unvalidated request body.

        The rate limit is counted before the body is validated. Validation
        failures share the message used for a duplicate account.
        """
        flow = Flow.REGISTER
        try:
            limit = await self.rate_limiter.allow(subject_key, ENDPOINT_REGISTER)
        except Exception:
            logger.exception("Unexpected error during registration")
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)
        if not limit.allowed:
            return AttemptResult(AttemptOutcome.RATE_LIMITED, flow)

        started = asyncio.get_running_loop().time()
        try:
            form = RegisterRequest.model_validate(payload)
        except ValidationError as e:
            logger.info("Registration payload rejected with %d validation errors", e.error_count())
            result = AttemptResult(AttemptOutcome.INVALID_CREDENTIALS, flow)
        else:
            result = await self._create_account(
                form.email, form.password, form.profile(), form.captcha_token
            )

        await self._pad_response(started)
        return result

    async def verify_challenge(self, subject_key: str, token: str | None) -> AttemptResult:
        """Standalone challenge verification, rate limited per caller."""
        flow = Flow.CHALLENGE
        try:
            limit = await self.rate_limiter.allow(subject_key, ENDPOINT_CHALLENGE_VERIFY)
            if not limit.allowed:
                return AttemptResult(AttemptOutcome.RATE_LIMITED, flow)

            rejected = await self._check_challenge_token(token, flow)
        except Exception:
            logger.exception("Unexpected error during challenge verification")
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)

        if rejected is not None:
            return rejected
        return AttemptResult(AttemptOutcome.ALLOWED, flow)

    async def _create_account(
        self,
        email: str,
        password: str,
        profile: dict[str, Any],
        challenge_token: str | None,
    ) -> AttemptResult:
        flow = Flow.REGISTER
        try:
            if self.register_requires_challenge:
                rejected = await self._check_challenge_token(challenge_token, flow)
                if rejected is not None:
                    return rejected

            result = await self.credentials.create_account(email, password, profile)
        except Exception:
            logger.exception("Unexpected error during registration for %s", mask_account(email))
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, flow)

        if not result.ok:
            logger.info("Registration rejected for %s: %s", mask_account(email), result.cause.value)
            return AttemptResult(AttemptOutcome.INVALID_CREDENTIALS, flow)

        return AttemptResult(AttemptOutcome.SUCCESS, flow)

    async def _check_challenge_token(self, token: str | None, flow: Flow) -> AttemptResult | None:
        """Return a rejection result, or None when the token verified."""
        if not token:
            return AttemptResult(AttemptOutcome.CHALLENGE_REQUIRED, flow, challenge_required=True)
        if not await self.challenge_verifier.verify_token(token):
            return AttemptResult(AttemptOutcome.CHALLENGE_FAILED, flow, challenge_required=True)
        return None

    async def _record_failure(self, email: str) -> AttemptResult:
        try:
            failures = await self.challenge_gate.on_failure(email)
            challenge_required = failures >= self.challenge_gate.threshold
        except StoreUnavailableError as e:
            logger.error("Could not record failed login for %s: %s", mask_account(email), e)
            challenge_required = True
        except Exception:
            logger.exception("Unexpected error recording failed login for %s", mask_account(email))
            return AttemptResult(AttemptOutcome.INTERNAL_ERROR, Flow.LOGIN)

        return AttemptResult(
            AttemptOutcome.INVALID_CREDENTIALS,
            Flow.LOGIN,
            challenge_required=challenge_required,
        )

    async def _pad_response(self, started: float) -> None:
        remaining = self.register_min_response_seconds - (asyncio.get_running_loop().time() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)
