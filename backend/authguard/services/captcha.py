"""Google reCAPTCHA token verification."""

import logging
from typing import Protocol

import httpx

from authguard.core.config import settings

logger = logging.getLogger(__name__)


class ChallengeVerifier(Protocol):
    async def verify_token(self, token: str | None) -> bool:
        ...


class RecaptchaVerifier:
    """reCAPTCHA siteverify client. Any error counts as a failed verification."""

    def __init__(
        self,
        secret_key: str | None = None,
        verify_url: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the reCAPTCHA client.

        Args:
            secret_key: reCAPTCHA server-side secret.
            verify_url: siteverify endpoint.
            timeout: Request timeout in seconds.
        """
        self.secret_key = secret_key if secret_key is not None else settings.RECAPTCHA_SECRET_KEY
        self.verify_url = verify_url or settings.RECAPTCHA_VERIFY_URL
        self.timeout = timeout if timeout is not None else settings.RECAPTCHA_TIMEOUT_SECONDS
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def verify_token(self, token: str | None) -> bool:
        if not token:
            return False

        if not self.secret_key:
            logger.error("RECAPTCHA_SECRET_KEY is not configured, rejecting challenge token")
            return False

        try:
            response = await self._client.post(
                self.verify_url,
                data={"secret": self.secret_key, "response": token},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error("CAPTCHA verification request failed: %s", e)
            return False
        except ValueError as e:
            logger.error("CAPTCHA verification returned invalid JSON: %s", e)
            return False

        if not isinstance(data, dict):
            logger.error("CAPTCHA verification returned unexpected payload type: %s", type(data).__name__)
            return False

        if not data.get("success", False):
            logger.info("CAPTCHA verification rejected: %s", data.get("error-codes", []))
            return False

        return True

    async def close(self) -> None:
        await self._client.aclose()
