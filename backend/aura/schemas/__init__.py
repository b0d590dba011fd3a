# backend/aura/schemas/__init__.py
"""
Pydantic schemas for the Aura backend.
"""

from aura.schemas.phone_verification import (
    ChannelStatusResponse,
    ClearVerificationCodesRequest,
    ClearVerificationCodesResponse,
    DeliveryStatusResponse,
    SendCodeRequest,
    SendCodeResponse,
    ValidateSessionRequest,
    ValidateSessionResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)

__all__ = [
    "ChannelStatusResponse",
    "ClearVerificationCodesRequest",
    "ClearVerificationCodesResponse",
    "DeliveryStatusResponse",
    "SendCodeRequest",
    "SendCodeResponse",
    "ValidateSessionRequest",
    "ValidateSessionResponse",
    "VerifyCodeRequest",
    "VerifyCodeResponse",
]
