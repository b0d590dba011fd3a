"""Service for sending SMS via Twilio."""

from __future__ import annotations

import asyncio
from enum import StrEnum
import logging
from typing import Any, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from aura.core.config import DeliveryConfig
from aura.core.exceptions import DeliveryConfigurationMissing, DeliveryError
from aura.utils.phone import mask_phone

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 1600

VERIFICATION_SMS_TEMPLATE = "Your Aura verification code is: {code}. Valid for {minutes} minutes."


class SMSStatus(StrEnum):
    SUCCESS = "success"
    DISABLED = "disabled"
    ERROR = "error"


class SMSService:
    """Service for sending SMS via Twilio."""

    channel = "sms"

    def __init__(
        self,
        config: DeliveryConfig,
        client: Optional[Client] = None,
        code_ttl_seconds: Optional[int] = None,
    ) -> None:
        self.from_number = config.sms_sender_number
        self.code_ttl_seconds = code_ttl_seconds or config.code_ttl_seconds
        self.enabled = config.sms_configured

        if self.enabled:
            self.client = client or Client(config.sms_account_id, config.sms_auth_token)
        else:
            self.client = None
            logger.info("SMS service disabled - Twilio credentials not configured")

    async def send_sms_with_status(
        self, to_number: str, message: str
    ) -> tuple[Optional[dict[str, Any]], SMSStatus]:
        """
        Send an SMS message.

        Args:
            to_number: Recipient phone number in E.164 format (+1234567890)
            message: Message body (max 1600 chars, truncated if longer)
        """
        if not self.enabled:
            logger.debug("SMS disabled, would send to %s", mask_phone(to_number))
            return None, SMSStatus.DISABLED

        if not to_number or not to_number.startswith("+"):
            logger.warning("Invalid phone number format: %s", mask_phone(to_number))
            return None, SMSStatus.ERROR

        if len(message) > MAX_SMS_LENGTH:
            message = message[: MAX_SMS_LENGTH - 3] + "..."

        result = await asyncio.to_thread(self._send_sms_sync, to_number, message)
        if result is None:
            return None, SMSStatus.ERROR
        return result, SMSStatus.SUCCESS

    async def send_verification_code(self, to_number: str, code: str) -> Optional[str]:
        """
        Text a one-time code and return the Twilio message SID.

        Raises:
            DeliveryConfigurationMissing: Twilio credentials are incomplete
            DeliveryError: Twilio rejected or failed the send
        """
        minutes = max(1, self.code_ttl_seconds // 60)
        body = VERIFICATION_SMS_TEMPLATE.format(code=code, minutes=minutes)
        result, status = await self.send_sms_with_status(to_number, body)
        if status is SMSStatus.DISABLED:
            raise DeliveryConfigurationMissing(self.channel)
        if status is SMSStatus.ERROR or result is None:
            raise DeliveryError("sms_send_failed")
        return result.get("sid")

    def _send_sms_sync(self, to_number: str, message: str) -> Optional[dict[str, Any]]:
        if not self.client:
            return None

        try:
            twilio_message = self.client.messages.create(
                body=message,
                to=to_number,
                from_=self.from_number,
            )
            logger.info("SMS sent to %s, SID: %s", mask_phone(to_number), twilio_message.sid)
            return {
                "sid": twilio_message.sid,
                "status": getattr(twilio_message, "status", None),
                "to": to_number,
                "from": self.from_number,
            }
        except TwilioRestException as exc:
            logger.error("Twilio error sending SMS to %s: %s", mask_phone(to_number), exc)
            return None
        except Exception as exc:  # pragma: no cover - network and client failures
            logger.error("Unexpected error sending SMS to %s: %s", mask_phone(to_number), exc)
            return None
