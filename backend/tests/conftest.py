# backend/tests/conftest.py
"""
Pytest configuration for the Aura backend.

Every test gets its own in-memory SQLite database, a controllable clock
and fake delivery channels. No test talks to WhatsApp or Twilio.
"""

import os

# Set the environment BEFORE any aura imports; blank values beat a local .env
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
for _name in (
    "WHATSAPP_ACCESS_TOKEN",
    "WHATSAPP_PHONE_NUMBER_ID",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
    "ADMIN_TOKEN",
):
    os.environ[_name] = ""
os.environ.pop("ALLOW_SIMULATED_DELIVERY", None)

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, List, Optional, Tuple

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aura import models  # noqa: F401  registers tables on Base.metadata
from aura.api.dependencies.database import get_db
from aura.api.dependencies.services import get_clock, get_delivery_router
from aura.core.config import DeliveryConfig, VerificationPolicy
from aura.core.exceptions import DeliveryConfigurationMissing, DeliveryError
from aura.database import Base
from aura.main import app
from aura.models.user import User
from aura.services.delivery_router import DeliveryRouter
from aura.services.verification_store import PhoneLockRegistry, VerificationStore

START = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when a test says so."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeChannel:
    """Stands in for WhatsAppService / SMSService."""

    def __init__(self, channel: str, configured: bool = True, fail_reason: Optional[str] = None):
        self.channel = channel
        self.configured = configured
        self.fail_reason = fail_reason
        self.sent: List[Tuple[str, str]] = []

    async def send_verification_code(self, to_number: str, code: str) -> Optional[str]:
        if not self.configured:
            raise DeliveryConfigurationMissing(self.channel)
        if self.fail_reason:
            raise DeliveryError(self.fail_reason)
        self.sent.append((to_number, code))
        return f"{self.channel}-msg-{len(self.sent)}"


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy() -> VerificationPolicy:
    return VerificationPolicy(
        code_ttl_seconds=600,
        max_attempts=5,
        max_codes_per_hour=5,
        default_country_code="20",
    )


@pytest.fixture
def store(db: Session, policy: VerificationPolicy, clock: FakeClock) -> VerificationStore:
    return VerificationStore(db, policy, clock=clock, locks=PhoneLockRegistry())


@pytest.fixture
def delivery_config() -> Callable[..., DeliveryConfig]:
    def _make(
        whatsapp: bool = False,
        sms: bool = False,
        allow_simulated: bool = True,
        is_production: bool = False,
    ) -> DeliveryConfig:
        return DeliveryConfig(
            whatsapp_access_token="EAAGtestaccesstoken1234567890" if whatsapp else None,
            whatsapp_phone_number_id="109876543210987" if whatsapp else None,
            whatsapp_template_name="aura",
            sms_account_id="AC0123456789abcdef0123456789abcdef" if sms else None,
            sms_auth_token="twilio-auth-token-secret" if sms else None,
            sms_sender_number="+15005550006" if sms else None,
            allow_simulated_delivery=allow_simulated,
            is_production=is_production,
        )

    return _make


@pytest.fixture
def make_router(delivery_config) -> Callable[..., DeliveryRouter]:
    """Build a router over FakeChannel instances (reachable as router.whatsapp / router.sms)."""

    def _make(
        whatsapp: bool = False,
        sms: bool = False,
        whatsapp_fails: Optional[str] = None,
        sms_fails: Optional[str] = None,
        allow_simulated: bool = True,
        is_production: bool = False,
    ) -> DeliveryRouter:
        config = delivery_config(
            whatsapp=whatsapp,
            sms=sms,
            allow_simulated=allow_simulated,
            is_production=is_production,
        )
        return DeliveryRouter(
            config,
            whatsapp_service=FakeChannel(
                "whatsapp", configured=whatsapp, fail_reason=whatsapp_fails
            ),
            sms_service=FakeChannel("sms", configured=sms, fail_reason=sms_fails),
        )

    return _make


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make(
        phone: str = "+201012345678", is_active: bool = True, name: str = "Test Usher"
    ) -> User:
        user = User(phone=phone, name=name, role="usher", is_active=is_active)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def api_router_options() -> dict:
    """Override with ``@pytest.mark.parametrize("api_router_options", [...])``."""
    return {}


@pytest.fixture
def api_router(make_router, api_router_options: dict) -> DeliveryRouter:
    return make_router(**api_router_options)


@pytest.fixture
def client(
    db: Session, clock: FakeClock, api_router: DeliveryRouter
) -> Generator[TestClient, None, None]:
    """TestClient wired to the test database, the fake clock and ``api_router``."""

    def _get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_delivery_router] = lambda: api_router
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
