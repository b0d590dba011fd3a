"""
WhatsApp Business delivery for one-time codes.

Sends the approved authentication template through the Meta Graph API
with the code as the template's only body parameter. When the template
call is rejected, one plain-text message is attempted before the send is
reported as failed.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from aura.core.config import DeliveryConfig
from aura.core.exceptions import DeliveryConfigurationMissing, DeliveryError
from aura.utils.phone import mask_phone

logger = logging.getLogger(__name__)

GRAPH_API_BASE_URL = "https://graph.facebook.com"

VERIFICATION_TEXT_TEMPLATE = "Your Aura verification code is: {code}. Valid for {minutes} minutes."


class WhatsAppService:
    """Client for the WhatsApp Business Cloud API messages endpoint."""

    channel = "whatsapp"

    def __init__(
        self,
        config: DeliveryConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        code_ttl_seconds: Optional[int] = None,
    ) -> None:
        self.access_token = config.whatsapp_access_token
        self.phone_number_id = config.whatsapp_phone_number_id
        self.template_name = config.whatsapp_template_name
        self.template_language = config.whatsapp_template_language
        self.timeout = config.whatsapp_timeout_seconds
        self.base_url = f"{GRAPH_API_BASE_URL}/{config.whatsapp_api_version}"
        self.code_ttl_seconds = code_ttl_seconds or config.code_ttl_seconds
        self.enabled = config.whatsapp_configured
        self._transport = transport

        if not self.enabled:
            logger.info("WhatsApp service disabled - Business API credentials not configured")

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.phone_number_id}/messages"

    async def send_verification_code(self, to_number: str, code: str) -> Optional[str]:
        """
        Deliver ``code`` to ``to_number`` and return the WhatsApp message id.

        Raises:
            DeliveryConfigurationMissing: token, phone number id or template
                name is absent
            DeliveryError: both the template and the text message failed;
                ``reason`` describes the last failure
        """
        if not self.enabled:
            raise DeliveryConfigurationMissing(self.channel)

        # Graph API expects the recipient without its leading "+"
        recipient = to_number.lstrip("+")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                return await self._post(client, self._template_payload(recipient, code))
            except DeliveryError as exc:
                logger.warning(
                    "WhatsApp template send to %s failed (%s); trying plain text",
                    mask_phone(to_number),
                    exc.reason,
                )
            return await self._post(client, self._text_payload(recipient, code))

    def _template_payload(self, recipient: str, code: str) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": self.template_language},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": code}],
                    }
                ],
            },
        }

    def _text_payload(self, recipient: str, code: str) -> Dict[str, Any]:
        minutes = max(1, self.code_ttl_seconds // 60)
        return {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"body": VERIFICATION_TEXT_TEMPLATE.format(code=code, minutes=minutes)},
        }

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> Optional[str]:
        try:
            resp = await client.post(
                self.messages_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.TimeoutException as exc:
            logger.error("WhatsApp %s message timed out: %s", payload["type"], exc)
            raise DeliveryError("whatsapp_timeout") from exc
        except httpx.HTTPError as exc:
            logger.error("WhatsApp %s message transport error: %s", payload["type"], exc)
            raise DeliveryError("whatsapp_transport_error") from exc

        if resp.status_code != 200:
            logger.error(
                "WhatsApp API returned %s for %s message: %s",
                resp.status_code,
                payload["type"],
                resp.text[:500],
            )
            raise DeliveryError(f"whatsapp_http_{resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            data = {}
        messages = data.get("messages") if isinstance(data, dict) else None
        message_id = messages[0].get("id") if messages else None
        logger.info("WhatsApp %s message accepted, id: %s", payload["type"], message_id)
        return message_id
