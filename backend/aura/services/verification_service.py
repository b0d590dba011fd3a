# backend/aura/services/verification_service.py
"""
Verification Service for the Aura backend

Composes the phone normalizer, the verification store and the delivery
router into the two halves of phone sign-in:

    request_code: normalize -> store.issue (rate checked) -> router.send
    confirm_code: normalize -> store.consume -> outcome

Per phone the states are NoActiveCode -> Pending -> Consumed, Expired or
Superseded. Wrong, expired and exhausted codes are ordinary outcomes and
come back as values; only infrastructure faults and caller errors raise.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from aura.core.config import VerificationPolicy
from aura.core.exceptions import (
    DeliveryFailedException,
    InvalidPhoneException,
    NotFoundException,
)
from aura.monitoring.prometheus_metrics import prometheus_metrics
from aura.repositories.factory import RepositoryFactory
from aura.repositories.user_repository import UserRepository
from aura.services.base import BaseService
from aura.services.delivery_router import DeliveryRouter
from aura.services.verification_store import (
    Clock,
    ConsumeResult,
    VerificationStore,
    as_utc,
)
from aura.utils.phone import mask_phone, normalize_phone
from aura.utils.verification_codes import is_well_formed_code

logger = logging.getLogger(__name__)

INVALID_PHONE_REASON = "invalid_phone"


@dataclass(frozen=True)
class RequestCodeOutcome:
    phone: str
    channel: str
    expires_at: datetime
    simulated: bool
    # Fallback or simulation cause, for logs and the status endpoint only
    reason: Optional[str] = None


@dataclass(frozen=True)
class ConfirmCodeOutcome:
    valid: bool
    reason: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[str] = None
    is_new_user: bool = False


@dataclass(frozen=True)
class SessionValidation:
    valid: bool
    reason: Optional[str] = None


class VerificationService(BaseService):
    """
    Orchestrates issuing and confirming phone verification codes.

    Store and user lookups are synchronous; ``request_code`` pushes them to
    a worker thread so the event loop only waits on delivery.
    """

    def __init__(
        self,
        db: Session,
        router: DeliveryRouter,
        policy: VerificationPolicy,
        clock: Optional[Clock] = None,
        store: Optional[VerificationStore] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        super().__init__(db)
        self.router = router
        self.policy = policy
        self.store = store or VerificationStore(db, policy, clock=clock)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("request_code")
    async def request_code(self, raw_phone: str) -> RequestCodeOutcome:
        """
        Issue a code for ``raw_phone`` and deliver it.

        The code is committed before delivery starts, so a failed send
        leaves it confirmable and the caller may retry delivery.

        Raises:
            InvalidPhoneException: input matches no phone shape
            RateLimitExceededException: too many codes for this phone in the last hour
            StorePersistenceException: the record could not be stored
            DeliveryFailedException: no channel delivered and simulation is disabled
        """
        phone = normalize_phone(raw_phone, self.policy.default_country_code)

        record = await asyncio.to_thread(
            self.store.issue, phone, self.policy.max_codes_per_hour
        )

        result = await self.router.send(phone, record.code)
        if not result.ok:
            raise DeliveryFailedException(result.reason)

        self.log_operation("request_code", channel=result.channel)
        return RequestCodeOutcome(
            phone=phone,
            channel=result.channel,
            expires_at=as_utc(record.expires_at),
            simulated=result.simulated,
            reason=result.reason,
        )

    @BaseService.measure_operation("confirm_code")
    def confirm_code(self, raw_phone: str, code: str) -> ConfirmCodeOutcome:
        """
        Check ``code`` for ``raw_phone``; never raises for a bad phone or code.

        On success the active user registered with this phone, if any, is
        returned so the caller can sign them in; otherwise the phone belongs
        to a new user.
        """
        try:
            phone = normalize_phone(raw_phone, self.policy.default_country_code)
        except InvalidPhoneException:
            prometheus_metrics.record_confirmation(INVALID_PHONE_REASON)
            return ConfirmCodeOutcome(valid=False, reason=INVALID_PHONE_REASON)

        if not is_well_formed_code(code):
            result = ConsumeResult.NOT_FOUND
        else:
            result = self.store.consume(phone, code)

        prometheus_metrics.record_confirmation(result.value)

        if result is not ConsumeResult.ACCEPTED:
            self.logger.info(f"Verification failed for {mask_phone(phone)}: {result.value}")
            return ConfirmCodeOutcome(valid=False, reason=result.value, phone=phone)

        user = self.user_repository.get_active_by_phone(phone)
        self.logger.info(f"Phone {mask_phone(phone)} verified (existing user: {user is not None})")
        return ConfirmCodeOutcome(
            valid=True,
            phone=phone,
            user_id=user.id if user else None,
            is_new_user=user is None,
        )

    @BaseService.measure_operation("validate_session")
    def validate_session(self, user_id: str) -> SessionValidation:
        """
        Check that a session's user still exists and is active.

        Raises:
            NotFoundException: no user with this id
        """
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")
        if not user.is_active:
            return SessionValidation(valid=False, reason="deactivated")
        return SessionValidation(valid=True)
