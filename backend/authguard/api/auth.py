from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from authguard.api.deps import get_policy
from authguard.core.errors import error_for_result
from authguard.core.outcomes import AttemptResult
from authguard.schemas.auth import AttemptResponse, CaptchaVerifyRequest, LoginRequest
from authguard.services.auth_policy import AuthAttemptPolicy
from authguard.utils.request import get_client_ip

router = APIRouter(prefix="/auth", tags=["auth"])


def _respond(result: AttemptResult) -> AttemptResponse:
    if not result.success:
        raise error_for_result(result)
    return AttemptResponse(message=result.message)


@router.post("/login", response_model=AttemptResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    policy: Annotated[AuthAttemptPolicy, Depends(get_policy)],
):
    result = await policy.login(
        get_client_ip(http_request),
        request.email,
        request.password,
        challenge_token=request.captcha_token,
    )
    # Session issuance happens in the consuming application
    return _respond(result)


@router.post("/register", response_model=AttemptResponse)
async def register(
    payload: Annotated[dict[str, Any], Body()],
    http_request: Request,
    policy: Annotated[AuthAttemptPolicy, Depends(get_policy)],
):
    # Body is validated inside the policy, after the rate limit is counted
    result = await policy.register_payload(get_client_ip(http_request), payload)
    return _respond(result)


@router.post("/captcha/verify", response_model=AttemptResponse)
async def verify_captcha(
    request: CaptchaVerifyRequest,
    http_request: Request,
    policy: Annotated[AuthAttemptPolicy, Depends(get_policy)],
):
    result = await policy.verify_challenge(get_client_ip(http_request), request.captcha_token)
    return _respond(result)
