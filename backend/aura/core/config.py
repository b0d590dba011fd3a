# backend/aura/core/config.py
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Optional, Set

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.info(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


NON_PROD_ENVIRONMENTS: Set[str] = {
    "local",
    "dev",
    "development",
    "test",
    "testing",
}
PROD_ENVIRONMENTS: Set[str] = {"prod", "production", "live"}


def _classify_environment(raw_environment: str | None) -> tuple[str, bool, bool]:
    """Return normalized environment with production/development classification."""

    normalized = (raw_environment or "").strip().lower()
    return normalized, normalized in PROD_ENVIRONMENTS, normalized in NON_PROD_ENVIRONMENTS


def _secret_value(secret: SecretStr | None) -> Optional[str]:
    if secret is None:
        return None
    value = secret.get_secret_value().strip()
    return value or None


@dataclass(frozen=True)
class DeliveryConfig:
    """
    Channel credentials handed to the delivery router at construction time,
    plus the code lifetime quoted in outgoing messages.

    A ``None`` field means the credential is absent; the router branches on
    that instead of raising.
    """

    whatsapp_access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_template_name: Optional[str] = None
    whatsapp_template_language: str = "en"
    whatsapp_api_version: str = "v18.0"
    whatsapp_timeout_seconds: float = 10.0
    sms_account_id: Optional[str] = None
    sms_auth_token: Optional[str] = None
    sms_sender_number: Optional[str] = None
    code_ttl_seconds: int = 600
    allow_simulated_delivery: bool = True
    is_production: bool = False

    @property
    def whatsapp_configured(self) -> bool:
        return bool(
            self.whatsapp_access_token
            and self.whatsapp_phone_number_id
            and self.whatsapp_template_name
        )

    @property
    def sms_configured(self) -> bool:
        return bool(self.sms_account_id and self.sms_auth_token and self.sms_sender_number)


@dataclass(frozen=True)
class VerificationPolicy:
    """Limits applied to one-time code issuance and confirmation."""

    code_ttl_seconds: int = 600
    max_attempts: int = 5
    max_codes_per_hour: int = 5
    default_country_code: str = "20"


class Settings(BaseSettings):
    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
    )
    database_url: str = Field(
        default="sqlite:///./aura.db",
        description="SQLAlchemy database URL",
    )
    sql_echo: bool = False

    # WhatsApp Business (Meta Graph API)
    whatsapp_access_token: SecretStr | None = Field(
        default=None,
        description="Bearer token for the WhatsApp Business Cloud API",
    )
    whatsapp_phone_number_id: str | None = Field(
        default=None,
        description="Sending phone number id from the WhatsApp Business account",
    )
    whatsapp_template_name: str | None = Field(
        default="aura",
        description="Approved authentication template carrying the code as {{1}}",
    )
    whatsapp_template_language: str = "en"
    whatsapp_api_version: str = "v18.0"
    whatsapp_timeout_seconds: float = Field(default=10.0, gt=0)

    # Twilio SMS
    twilio_account_sid: str | None = None
    twilio_auth_token: SecretStr | None = None
    twilio_phone_number: str | None = None

    # One-time code policy
    verification_code_ttl_seconds: int = Field(default=600, ge=60)
    verification_max_attempts: int = Field(default=5, ge=1)
    verification_max_codes_per_hour: int = Field(default=5, ge=1)
    default_country_code: str = Field(
        default="20",
        description="Country calling code assumed for national-format numbers",
    )
    allow_simulated_delivery: bool | None = Field(
        default=None,
        description="Log codes instead of failing when no real channel delivers "
        "(defaults to true outside production)",
    )

    admin_token: SecretStr | None = Field(
        default=None,
        description="Token required by admin verification tools outside development",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_country_code", mode="before")
    @classmethod
    def _strip_country_code(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip().lstrip("+")
            if not cleaned.isdigit() or not 1 <= len(cleaned) <= 3:
                raise ValueError("DEFAULT_COUNTRY_CODE must be 1-3 digits")
            return cleaned
        return value

    @field_validator(
        "whatsapp_phone_number_id",
        "whatsapp_template_name",
        "twilio_account_sid",
        "twilio_phone_number",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _derive_simulation_default(self) -> "Settings":
        if self.allow_simulated_delivery is None:
            self.allow_simulated_delivery = not self.is_production
        elif self.allow_simulated_delivery and self.is_production:
            logger.warning(
                "ALLOW_SIMULATED_DELIVERY is enabled in production; "
                "verification codes may be logged instead of delivered"
            )
        return self

    @property
    def is_production(self) -> bool:
        _, is_prod, _ = _classify_environment(self.environment)
        return is_prod

    @property
    def is_development(self) -> bool:
        _, _, is_non_prod = _classify_environment(self.environment)
        return is_non_prod

    def delivery_config(self) -> DeliveryConfig:
        """Build the explicit channel configuration for the delivery router."""
        return DeliveryConfig(
            whatsapp_access_token=_secret_value(self.whatsapp_access_token),
            whatsapp_phone_number_id=self.whatsapp_phone_number_id,
            whatsapp_template_name=self.whatsapp_template_name,
            whatsapp_template_language=self.whatsapp_template_language,
            whatsapp_api_version=self.whatsapp_api_version,
            whatsapp_timeout_seconds=self.whatsapp_timeout_seconds,
            sms_account_id=self.twilio_account_sid,
            sms_auth_token=_secret_value(self.twilio_auth_token),
            sms_sender_number=self.twilio_phone_number,
            code_ttl_seconds=self.verification_code_ttl_seconds,
            allow_simulated_delivery=bool(self.allow_simulated_delivery),
            is_production=self.is_production,
        )

    def verification_policy(self) -> VerificationPolicy:
        return VerificationPolicy(
            code_ttl_seconds=self.verification_code_ttl_seconds,
            max_attempts=self.verification_max_attempts,
            max_codes_per_hour=self.verification_max_codes_per_hour,
            default_country_code=self.default_country_code,
        )


settings = Settings()
