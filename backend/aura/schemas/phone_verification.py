# backend/aura/schemas/phone_verification.py
"""Request and response models for phone verification and its admin tools."""

from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, model_validator

from aura.schemas._strict_base import StrictModel, StrictRequestModel


class SendCodeRequest(StrictRequestModel):
    """Request a one-time code for a phone number"""

    phone: str = Field(..., min_length=1, max_length=32, description="Phone number in any common format")


class SendCodeResponse(StrictModel):
    """Where the code went; the code itself is never returned"""

    success: bool = True
    phone: str = Field(..., description="Canonical phone the code was issued for")
    channel: str = Field(..., description="whatsapp, sms or simulated")
    expires_in_seconds: int
    simulated: bool = False


class VerifyCodeRequest(StrictRequestModel):
    phone: str = Field(..., min_length=1, max_length=32)
    code: str = Field(..., min_length=1, max_length=12)


class VerifyCodeResponse(StrictModel):
    success: bool = True
    verified: bool = True
    phone: str
    user_id: Optional[str] = None
    is_new_user: bool = False
    message: str = "Phone number verified"


class ValidateSessionRequest(StrictRequestModel):
    user_id: str = Field(..., min_length=1, max_length=64)


class ValidateSessionResponse(StrictModel):
    valid: bool
    reason: Optional[str] = None


class ClearVerificationCodesRequest(StrictRequestModel):
    """Delete codes for one phone (any stored format) or, with clear_all, every code"""

    phone: Optional[str] = Field(default=None, max_length=32)
    clear_all: bool = False

    @model_validator(mode="after")
    def _require_target(self) -> "ClearVerificationCodesRequest":
        if not self.clear_all and not self.phone:
            raise ValueError("Provide a phone or set clear_all")
        return self


class ClearVerificationCodesResponse(StrictModel):
    success: bool = True
    cleared: int


class ChannelStatusResponse(StrictModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    channel: str
    configured: bool
    missing: List[str] = Field(default_factory=list)
    masked: Dict[str, Optional[str]] = Field(default_factory=dict)


class DeliveryStatusResponse(StrictModel):
    """Which channels are configured; secrets appear only as masked prefixes"""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    whatsapp: ChannelStatusResponse
    sms: ChannelStatusResponse
    primary_channel: str
    simulated_allowed: bool
    is_production: bool
    warnings: List[str] = Field(default_factory=list)
