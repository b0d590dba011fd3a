# backend/aura/services/delivery_router.py
"""
Delivery Router for one-time verification codes

Chooses a channel and dispatches the code:

1. WhatsApp, when the Business API is configured
2. SMS via Twilio, when WhatsApp is unconfigured or failed
3. Simulated (log only), when no real channel delivered and the
   deployment allows simulation

The router never persists anything. Channel failures and missing
configuration are logged and counted; callers only see the
DeliveryResult.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, List, Optional, Protocol

from aura.core.config import DeliveryConfig
from aura.core.exceptions import DeliveryConfigurationMissing, DeliveryError
from aura.monitoring.prometheus_metrics import prometheus_metrics
from aura.services.sms_service import SMSService
from aura.services.whatsapp_service import WhatsAppService
from aura.utils.phone import mask_phone

logger = logging.getLogger(__name__)

SIMULATED_CHANNEL = "simulated"


class CodeChannel(Protocol):
    channel: str

    async def send_verification_code(self, to_number: str, code: str) -> Optional[str]: ...


@dataclass(frozen=True)
class DeliveryResult:
    channel: str
    ok: bool
    message_id: Optional[str] = None
    # Machine-readable cause of a failure or of falling back past a channel
    reason: Optional[str] = None

    @property
    def simulated(self) -> bool:
        return self.channel == SIMULATED_CHANNEL


@dataclass(frozen=True)
class ChannelStatus:
    channel: str
    configured: bool
    missing: List[str] = field(default_factory=list)
    masked: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryStatus:
    whatsapp: ChannelStatus
    sms: ChannelStatus
    primary_channel: str
    simulated_allowed: bool
    is_production: bool
    warnings: List[str] = field(default_factory=list)


def mask_secret(value: Optional[str], visible: int = 8) -> Optional[str]:
    """Return the first ``visible`` characters followed by "...", never the whole value."""
    if not value:
        return None
    if len(value) <= visible * 2:
        return "***"
    return f"{value[:visible]}..."


class DeliveryRouter:
    """Send a code over the first channel that accepts it."""

    def __init__(
        self,
        config: DeliveryConfig,
        whatsapp_service: Optional[CodeChannel] = None,
        sms_service: Optional[CodeChannel] = None,
    ):
        self.config = config
        self.whatsapp = whatsapp_service or WhatsAppService(config)
        self.sms = sms_service or SMSService(config)

    async def send(self, phone: str, code: str) -> DeliveryResult:
        """
        Deliver ``code`` to ``phone``.

        Always returns a result; ``ok`` is False only when every real
        channel failed or is unconfigured and simulation is not allowed.
        """
        reasons: List[str] = []

        for service in (self.whatsapp, self.sms):
            channel = service.channel
            try:
                message_id = await service.send_verification_code(phone, code)
            except DeliveryConfigurationMissing as exc:
                logger.warning("Skipping %s delivery: %s", channel, exc)
                prometheus_metrics.record_configuration_missing(channel)
                reasons.append(exc.reason)
                continue
            except DeliveryError as exc:
                logger.warning(
                    "%s delivery to %s failed: %s", channel, mask_phone(phone), exc.reason
                )
                prometheus_metrics.record_delivery(channel, ok=False)
                reasons.append(exc.reason)
                continue

            prometheus_metrics.record_delivery(channel, ok=True)
            logger.info("Verification code delivered to %s via %s", mask_phone(phone), channel)
            return DeliveryResult(
                channel=channel,
                ok=True,
                message_id=message_id,
                reason=",".join(reasons) or None,
            )

        reason = ",".join(reasons) or "no_channel_available"

        if self.config.allow_simulated_delivery:
            logger.warning(
                "SIMULATED delivery (%s): verification code for %s is %s", reason, phone, code
            )
            prometheus_metrics.record_delivery(SIMULATED_CHANNEL, ok=True)
            return DeliveryResult(channel=SIMULATED_CHANNEL, ok=True, reason=reason)

        logger.error(
            "Verification code for %s was not delivered and simulation is disabled (%s)",
            mask_phone(phone),
            reason,
        )
        prometheus_metrics.record_delivery(SIMULATED_CHANNEL, ok=False)
        return DeliveryResult(channel=SIMULATED_CHANNEL, ok=False, reason=reason)

    def get_status(self) -> DeliveryStatus:
        """Report channel configuration without sending anything."""
        config = self.config

        whatsapp_fields = {
            "whatsapp_access_token": config.whatsapp_access_token,
            "whatsapp_phone_number_id": config.whatsapp_phone_number_id,
            "whatsapp_template_name": config.whatsapp_template_name,
        }
        sms_fields = {
            "twilio_account_sid": config.sms_account_id,
            "twilio_auth_token": config.sms_auth_token,
            "twilio_phone_number": config.sms_sender_number,
        }

        whatsapp = ChannelStatus(
            channel="whatsapp",
            configured=config.whatsapp_configured,
            missing=[name for name, value in whatsapp_fields.items() if not value],
            masked={
                "access_token": mask_secret(config.whatsapp_access_token, visible=10),
                "phone_number_id": mask_secret(config.whatsapp_phone_number_id),
                "template_name": config.whatsapp_template_name,
            },
        )
        sms = ChannelStatus(
            channel="sms",
            configured=config.sms_configured,
            missing=[name for name, value in sms_fields.items() if not value],
            masked={
                "account_sid": mask_secret(config.sms_account_id, visible=10),
                "auth_token": "***" if config.sms_auth_token else None,
                "phone_number": mask_phone(config.sms_sender_number)
                if config.sms_sender_number
                else None,
            },
        )

        if whatsapp.configured:
            primary = "whatsapp"
        elif sms.configured:
            primary = "sms"
        else:
            primary = SIMULATED_CHANNEL

        warnings: List[str] = []
        # The template name has a default, so only credentials signal intent
        whatsapp_credentials = [
            config.whatsapp_access_token,
            config.whatsapp_phone_number_id,
        ]
        for status, credentials in (
            (whatsapp, whatsapp_credentials),
            (sms, list(sms_fields.values())),
        ):
            if not status.configured and any(credentials):
                warnings.append(
                    f"{status.channel} is partially configured; missing {', '.join(status.missing)}"
                )
        if config.is_production and primary == SIMULATED_CHANNEL:
            warnings.append("No real delivery channel is configured in production")
        if config.is_production and config.allow_simulated_delivery:
            warnings.append("Simulated delivery is enabled in production")
        if primary == SIMULATED_CHANNEL and not config.allow_simulated_delivery:
            warnings.append("No delivery channel is available; code requests will fail")

        return DeliveryStatus(
            whatsapp=whatsapp,
            sms=sms,
            primary_channel=primary,
            simulated_allowed=config.allow_simulated_delivery,
            is_production=config.is_production,
            warnings=warnings,
        )
