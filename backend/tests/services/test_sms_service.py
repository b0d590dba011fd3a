from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from twilio.base.exceptions import TwilioRestException

from aura.core.exceptions import DeliveryConfigurationMissing, DeliveryError
from aura.services.sms_service import MAX_SMS_LENGTH, SMSService, SMSStatus

PHONE = "+201012345678"


@pytest.fixture
def twilio_client() -> MagicMock:
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(sid="SM123", status="queued")
    return client


class TestSendVerificationCode:
    @pytest.mark.asyncio
    async def test_sends_code_and_returns_sid(self, delivery_config, twilio_client) -> None:
        service = SMSService(delivery_config(sms=True), client=twilio_client, code_ttl_seconds=300)

        sid = await service.send_verification_code(PHONE, "123456")

        assert sid == "SM123"
        twilio_client.messages.create.assert_called_once_with(
            body="Your Aura verification code is: 123456. Valid for 5 minutes.",
            to=PHONE,
            from_="+15005550006",
        )

    @pytest.mark.asyncio
    async def test_lifetime_defaults_to_the_configured_ttl(
        self, delivery_config, twilio_client
    ) -> None:
        config = replace(delivery_config(sms=True), code_ttl_seconds=300)
        service = SMSService(config, client=twilio_client)

        await service.send_verification_code(PHONE, "123456")

        body = twilio_client.messages.create.call_args.kwargs["body"]
        assert body.endswith("Valid for 5 minutes.")

    @pytest.mark.asyncio
    async def test_twilio_rejection_is_a_delivery_error(
        self, delivery_config, twilio_client
    ) -> None:
        twilio_client.messages.create.side_effect = TwilioRestException(
            400, "https://api.twilio.com/Messages.json", msg="Invalid 'To' number"
        )
        service = SMSService(delivery_config(sms=True), client=twilio_client)

        with pytest.raises(DeliveryError) as exc_info:
            await service.send_verification_code(PHONE, "123456")

        assert exc_info.value.reason == "sms_send_failed"

    @pytest.mark.asyncio
    async def test_unconfigured_service_raises_configuration_missing(
        self, delivery_config, twilio_client
    ) -> None:
        service = SMSService(delivery_config(), client=twilio_client)

        with pytest.raises(DeliveryConfigurationMissing) as exc_info:
            await service.send_verification_code(PHONE, "123456")

        assert exc_info.value.reason == "sms_not_configured"
        assert service.client is None
        twilio_client.messages.create.assert_not_called()


class TestSendSmsWithStatus:
    @pytest.mark.asyncio
    async def test_rejects_non_e164_numbers(self, delivery_config, twilio_client) -> None:
        service = SMSService(delivery_config(sms=True), client=twilio_client)

        result, status = await service.send_sms_with_status("01012345678", "hello")

        assert result is None
        assert status is SMSStatus.ERROR
        twilio_client.messages.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_long_messages_are_truncated(self, delivery_config, twilio_client) -> None:
        service = SMSService(delivery_config(sms=True), client=twilio_client)

        result, status = await service.send_sms_with_status(PHONE, "x" * 2000)

        assert status is SMSStatus.SUCCESS
        assert result["sid"] == "SM123"
        body = twilio_client.messages.create.call_args.kwargs["body"]
        assert len(body) == MAX_SMS_LENGTH
        assert body.endswith("...")

    @pytest.mark.asyncio
    async def test_disabled_service_reports_disabled(self, delivery_config) -> None:
        service = SMSService(delivery_config())

        assert await service.send_sms_with_status(PHONE, "hello") == (None, SMSStatus.DISABLED)
