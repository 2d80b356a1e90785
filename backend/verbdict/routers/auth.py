# backend/verbdict/routers/auth.py
from fastapi import APIRouter, Depends, Request

from verbdict.models import CaptchaResponse, SuccessResponse, VerifyLoginRequest
from verbdict.security import client_identity, get_gate
from verbdict.security.gate import VerificationGate
from verbdict.security.limiter import limiter, verify_rate_limit

router = APIRouter(prefix="/api", tags=["auth"])


@router.get("/captcha", response_model=CaptchaResponse)
@limiter.limit(verify_rate_limit)
def get_captcha(request: Request, gate: VerificationGate = Depends(get_gate)) -> CaptchaResponse:
    """Issue an arithmetic challenge, or 429 while the caller is banned."""
    challenge = gate.issue_challenge(client_identity(request))
    return CaptchaResponse(visual=challenge.visual, token=challenge.token)


@router.post("/verify", response_model=SuccessResponse)
@limiter.limit(verify_rate_limit)
def verify_login(
    request: Request,
    payload: VerifyLoginRequest,
    gate: VerificationGate = Depends(get_gate),
) -> SuccessResponse:
    gate.verify_login(
        client_identity(request),
        payload.password,
        payload.captcha_answer,
        payload.captcha_token,
    )
    return SuccessResponse(success=True)
