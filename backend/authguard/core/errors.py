"""
Standardized error response system.

Provides consistent error responses for the protected auth endpoints.
"""
import uuid
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from authguard.core.outcomes import AttemptOutcome, AttemptResult


class ErrorCode:
    """Standard error codes."""

    # Abuse prevention
    RATE_LIMITED = "RATE_LIMITED"
    CHALLENGE_REQUIRED = "CHALLENGE_REQUIRED"
    CHALLENGE_FAILED = "CHALLENGE_FAILED"

    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standard error response format."""

    @staticmethod
    def create(
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details (optional)
            request_id: Request correlation ID (optional)

        Returns:
            JSONResponse with standard error format
        """
        error_data: Dict[str, Any] = {
            "error": {
                "code": code,
                "message": message,
            }
        }

        if details:
            error_data["error"]["details"] = details

        if request_id:
            error_data["error"]["request_id"] = request_id

        return JSONResponse(status_code=status_code, content=error_data)


class HTTPError(HTTPException):
    """
    Enhanced HTTPException with standard error response format.

    Usage:
        raise HTTPError(
            status_code=429,
            code=ErrorCode.RATE_LIMITED,
            message="Too many requests. Please try again later.",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


async def http_error_handler(request: Request, exc: HTTPError) -> JSONResponse:
    """
    Handle HTTPError exceptions and return standardized error response.

    This should be added to FastAPI exception handlers.
    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    return ErrorResponse.create(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
    )


_OUTCOME_ERRORS: Dict[AttemptOutcome, tuple[int, str]] = {
    AttemptOutcome.RATE_LIMITED: (status.HTTP_429_TOO_MANY_REQUESTS, ErrorCode.RATE_LIMITED),
    AttemptOutcome.CHALLENGE_REQUIRED: (status.HTTP_403_FORBIDDEN, ErrorCode.CHALLENGE_REQUIRED),
    AttemptOutcome.CHALLENGE_FAILED: (status.HTTP_403_FORBIDDEN, ErrorCode.CHALLENGE_FAILED),
    AttemptOutcome.INVALID_CREDENTIALS: (status.HTTP_401_UNAUTHORIZED, ErrorCode.INVALID_CREDENTIALS),
    AttemptOutcome.INTERNAL_ERROR: (status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR),
}


def error_for_result(result: AttemptResult) -> HTTPError:
    """
    Build the HTTP error for a failed attempt.

    Only the outcome kind and the challenge flag are carried over. The
    challenge flag tells the client to render the widget on its next attempt.
    """
    status_code, code = _OUTCOME_ERRORS[result.outcome]
    details = {"requires_captcha": True} if result.challenge_required else None
    return HTTPError(
        status_code=status_code,
        code=code,
        message=result.message,
        details=details,
    )
