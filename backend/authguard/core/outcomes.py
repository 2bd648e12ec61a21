"""
Attempt outcomes and the fixed messages shown for them.

The caller only ever sees a message chosen from the outcome kind and the flow
it came from. Nothing a collaborator returns (error text, failure cause) can
reach a response through this module.
"""

from dataclasses import dataclass
from enum import Enum


class AttemptOutcome(str, Enum):
    """Result kind of one protected request."""

    ALLOWED = "allowed"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    CHALLENGE_REQUIRED = "challenge_required"
    CHALLENGE_FAILED = "challenge_failed"
    INVALID_CREDENTIALS = "invalid_credentials"
    INTERNAL_ERROR = "internal_error"


class Flow(str, Enum):
    """Entry point an attempt belongs to."""

    LOGIN = "login"
    REGISTER = "register"
    CHALLENGE = "challenge"


RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
CHALLENGE_REQUIRED_MESSAGE = "Security check required."
CHALLENGE_FAILED_MESSAGE = "CAPTCHA verification failed. Please try again."
LOGIN_INVALID_MESSAGE = "Incorrect email or password"
REGISTER_REJECTED_MESSAGE = "Unable to create account. Please check your details or try logging in."
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

_SUCCESS_MESSAGES = {
    Flow.LOGIN: "Signed in",
    Flow.REGISTER: "Account created",
    Flow.CHALLENGE: "Authorized",
}

_INVALID_MESSAGES = {
    Flow.LOGIN: LOGIN_INVALID_MESSAGE,
    Flow.REGISTER: REGISTER_REJECTED_MESSAGE,
    Flow.CHALLENGE: CHALLENGE_FAILED_MESSAGE,
}

# Outcomes a caller sees as an error
ERROR_OUTCOMES = frozenset({
    AttemptOutcome.RATE_LIMITED,
    AttemptOutcome.CHALLENGE_REQUIRED,
    AttemptOutcome.CHALLENGE_FAILED,
    AttemptOutcome.INVALID_CREDENTIALS,
    AttemptOutcome.INTERNAL_ERROR,
})


def message_for(outcome: AttemptOutcome, flow: Flow) -> str:
    """Return the fixed user-facing message for an outcome."""
    if outcome in (AttemptOutcome.SUCCESS, AttemptOutcome.ALLOWED):
        return _SUCCESS_MESSAGES[flow]
    if outcome == AttemptOutcome.RATE_LIMITED:
        return RATE_LIMITED_MESSAGE
    if outcome == AttemptOutcome.CHALLENGE_REQUIRED:
        return CHALLENGE_REQUIRED_MESSAGE
    if outcome == AttemptOutcome.CHALLENGE_FAILED:
        return CHALLENGE_FAILED_MESSAGE
    if outcome == AttemptOutcome.INVALID_CREDENTIALS:
        return _INVALID_MESSAGES[flow]
    return INTERNAL_ERROR_MESSAGE


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one protected request as returned to request-handling code."""

    outcome: AttemptOutcome
    flow: Flow
    challenge_required: bool = False

    @property
    def success(self) -> bool:
        return self.outcome not in ERROR_OUTCOMES

    @property
    def message(self) -> str:
        return message_for(self.outcome, self.flow)
