"""Interface to the external credential verification service."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class CredentialCause(str, Enum):
    """Why the credential service rejected a request. Never shown to callers."""

    NONE = "none"
    NOT_FOUND = "not_found"
    BAD_SECRET = "bad_secret"
    UNCONFIRMED = "unconfirmed"
    DUPLICATE_ON_CREATE = "duplicate_on_create"


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    cause: CredentialCause = CredentialCause.NONE

    @classmethod
    def accepted(cls) -> "VerificationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, cause: CredentialCause) -> "VerificationResult":
        return cls(ok=False, cause=cause)


class CredentialVerifier(Protocol):
    """Password engine and account directory, owned outside this package."""

    async def verify(self, identity: str, secret: str) -> VerificationResult:
        ...

    async def create_account(
        self,
        identity: str,
        secret: str,
        profile: dict[str, Any],
    ) -> VerificationResult:
        ...
