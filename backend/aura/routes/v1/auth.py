# backend/aura/routes/v1/auth.py
"""
Phone verification routes - API v1

Versioned phone sign-in endpoints under /api/v1/auth.

Endpoints:
    POST /send-code           → Issue and deliver a one-time code
    POST /verify-code         → Confirm a one-time code
    POST /validate-session    → Check a session's user is still active
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aura.api.dependencies.services import get_verification_service
from aura.schemas.phone_verification import (
    SendCodeRequest,
    SendCodeResponse,
    ValidateSessionRequest,
    ValidateSessionResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from aura.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

# Mismatch, expiry and exhausted attempts look identical to the caller
GENERIC_VERIFICATION_FAILURE = "Invalid or expired verification code"

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["auth-v1"])


@router.post("/send-code", response_model=SendCodeResponse)
async def send_code(
    payload: SendCodeRequest,
    verification_service: VerificationService = Depends(get_verification_service),
) -> SendCodeResponse:
    """
    Send a verification code to a phone number.

    WhatsApp is tried first, then SMS. The response names the channel but
    never contains the code.
    """
    outcome = await verification_service.request_code(payload.phone)
    return SendCodeResponse(
        phone=outcome.phone,
        channel=outcome.channel,
        expires_in_seconds=verification_service.policy.code_ttl_seconds,
        simulated=outcome.simulated,
    )


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    payload: VerifyCodeRequest,
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerifyCodeResponse:
    """
    Confirm a verification code.

    Any failure returns 400 with the same generic message; the specific
    reason is only logged and counted.
    """
    outcome = await asyncio.to_thread(
        verification_service.confirm_code, payload.phone, payload.code
    )
    if not outcome.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": GENERIC_VERIFICATION_FAILURE, "code": "VERIFICATION_FAILED"},
        )

    return VerifyCodeResponse(
        phone=outcome.phone or payload.phone,
        user_id=outcome.user_id,
        is_new_user=outcome.is_new_user,
    )


@router.post("/validate-session", response_model=ValidateSessionResponse)
async def validate_session(
    payload: ValidateSessionRequest,
    verification_service: VerificationService = Depends(get_verification_service),
) -> ValidateSessionResponse:
    """Check that the session's user exists (404 otherwise) and is active."""
    result = await asyncio.to_thread(verification_service.validate_session, payload.user_id)
    return ValidateSessionResponse(valid=result.valid, reason=result.reason)
