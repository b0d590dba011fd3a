# backend/aura/services/verification_store.py
"""
Verification Store for the Aura backend

Owns the lifecycle of one-time verification records:

- issue: supersede the open record for a phone and persist a new code
- consume: confirm a candidate code exactly once
- clear: administrative delete (single phone or everything)
- sweep_expired: best-effort reclamation of inert rows

At most one record per phone is open at any time. Within a process the
store serializes issue/consume per phone with a lock registry; across
processes the partial unique index and ``SELECT ... FOR UPDATE`` hold the
same line.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from enum import Enum
import hmac
import math
import threading
from typing import Callable, Iterator, Optional, Union
import weakref

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura.core.config import VerificationPolicy
from aura.core.exceptions import (
    InvalidPhoneException,
    RateLimitExceededException,
    RepositoryConflictException,
    RepositoryException,
    StorePersistenceException,
)
from aura.models.verification_code import VerificationCode
from aura.repositories.factory import RepositoryFactory
from aura.repositories.verification_code_repository import VerificationCodeRepository
from aura.services.base import BaseService
from aura.utils.phone import legacy_phone_variants, mask_phone, normalize_phone
from aura.utils.verification_codes import generate_verification_code

Clock = Callable[[], datetime]

RATE_WINDOW = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ConsumeResult(str, Enum):
    ACCEPTED = "accepted"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


class _ClearAll:
    def __repr__(self) -> str:
        return "ALL"


ALL = _ClearAll()


class _PhoneLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = threading.Lock()


class PhoneLockRegistry:
    """
    Process-local lock per phone.

    Entries disappear once no caller holds or waits on them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, _PhoneLock]" = (
            weakref.WeakValueDictionary()
        )

    @contextmanager
    def hold(self, phone: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(phone)
            if entry is None:
                entry = _PhoneLock()
                self._locks[phone] = entry
        with entry.lock:
            yield


phone_locks = PhoneLockRegistry()


class VerificationStore(BaseService):
    """
    Persistence of outstanding one-time codes keyed by canonical phone.

    Every public method commits its own transaction. Database failures are
    rolled back and surfaced as StorePersistenceException; the store never
    retries them, except for the single unique-index conflict retry in
    ``issue``.
    """

    def __init__(
        self,
        db: Session,
        policy: VerificationPolicy,
        clock: Optional[Clock] = None,
        repository: Optional[VerificationCodeRepository] = None,
        locks: Optional[PhoneLockRegistry] = None,
    ):
        super().__init__(db)
        self.policy = policy
        self.clock: Clock = clock or utcnow
        self.repository = repository or RepositoryFactory.create_verification_code_repository(db)
        self.locks = locks or phone_locks

    def now(self) -> datetime:
        return as_utc(self.clock())

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success; roll back and raise StorePersistenceException on
        database failure. Unique conflicts are rolled back and re-raised
        unchanged so ``issue`` can retry them.
        """
        try:
            yield self.db
            self.db.commit()
        except RepositoryConflictException:
            self.db.rollback()
            raise
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            self.logger.error(f"Verification store operation failed: {str(exc)}")
            raise StorePersistenceException(
                "Verification storage is unavailable",
                details={"error": type(exc).__name__},
            ) from exc
        except Exception:
            self.db.rollback()
            raise

    @BaseService.measure_operation("issue")
    def issue(self, phone: str, max_per_window: Optional[int] = None) -> VerificationCode:
        """
        Supersede any open record for ``phone`` and persist a fresh code.

        With ``max_per_window`` set, the issuance count for the last
        ``RATE_WINDOW`` is checked under the same lock and transaction as
        the insert, so concurrent requests cannot overshoot it.

        The new record is committed before this returns, so delivery can
        start without holding the per-phone lock.

        Raises:
            RateLimitExceededException: ``max_per_window`` codes were already
                issued for ``phone`` in the window
            StorePersistenceException: on database failure, or when the
                open-record index still conflicts after one retry
        """
        with self.locks.hold(phone):
            for attempt in (1, 2):
                now = self.now()
                try:
                    with self.transaction():
                        if max_per_window is not None:
                            self._check_issue_rate(phone, now, max_per_window)
                        superseded = self.repository.supersede_open(phone, now)
                        record = self.repository.create(
                            phone=phone,
                            code=generate_verification_code(),
                            issued_at=now,
                            expires_at=now + timedelta(seconds=self.policy.code_ttl_seconds),
                            attempts=0,
                        )
                except RepositoryConflictException as exc:
                    if attempt == 2:
                        self.logger.error(
                            f"Open verification code conflict persisted for {mask_phone(phone)}"
                        )
                        raise StorePersistenceException(
                            "Could not issue verification code",
                            details={"error": "open_record_conflict"},
                        ) from exc
                    self.logger.warning(
                        f"Concurrent issue for {mask_phone(phone)}, retrying once"
                    )
                    continue

                self.logger.info(
                    f"Issued verification code for {mask_phone(phone)} "
                    f"(superseded {superseded})"
                )
                return record

        raise StorePersistenceException("Could not issue verification code")  # pragma: no cover

    def _check_issue_rate(self, phone: str, now: datetime, limit: int) -> None:
        since = now - RATE_WINDOW
        issued = self.repository.count_issued_since(phone, since)
        if issued < limit:
            return

        oldest = self.repository.oldest_issued_since(phone, since)
        oldest = as_utc(oldest) if oldest is not None else now
        retry_after = max(1, math.ceil((oldest + RATE_WINDOW - now).total_seconds()))
        self.logger.warning(
            f"Rate limit hit for {mask_phone(phone)}: {issued} codes in the last hour"
        )
        raise RateLimitExceededException(
            retry_after_seconds=retry_after,
            details={"max_codes_per_hour": limit},
        )

    @BaseService.measure_operation("consume")
    def consume(self, phone: str, candidate: str) -> ConsumeResult:
        """
        Confirm ``candidate`` against the open record for ``phone``.

        Checks run in order: no open record, expiry, attempt exhaustion,
        then a constant-time comparison. Only a mismatch increments
        ``attempts``; only an accepted code sets ``consumed_at``.
        """
        with self.locks.hold(phone):
            with self.transaction():
                now = self.now()
                record = self.repository.get_open_for_update(phone)
                if record is None:
                    return ConsumeResult.NOT_FOUND
                if now > as_utc(record.expires_at):
                    return ConsumeResult.EXPIRED
                if (record.attempts or 0) >= self.policy.max_attempts:
                    return ConsumeResult.TOO_MANY_ATTEMPTS
                if not hmac.compare_digest(
                    record.code.encode("utf-8"), (candidate or "").encode("utf-8")
                ):
                    self.repository.increment_attempts(record)
                    return ConsumeResult.MISMATCH

                self.repository.mark_consumed(record, now)
                return ConsumeResult.ACCEPTED

    @BaseService.measure_operation("clear")
    def clear(self, target: Union[str, _ClearAll]) -> int:
        """
        Delete records for one phone, or every record when given ``ALL``.

        A single phone also matches rows stored before normalization
        existed: the raw value with and without its leading "+", plus the
        same variants of its canonical form.
        """
        with self.transaction():
            if target is ALL:
                cleared = self.repository.delete_all()
                self.logger.warning(f"Cleared all verification codes ({cleared})")
                return cleared

            raw = str(target)
            variants = list(legacy_phone_variants(raw))
            try:
                canonical = normalize_phone(raw, self.policy.default_country_code)
            except InvalidPhoneException:
                canonical = None
            if canonical:
                variants.extend(legacy_phone_variants(canonical))

            cleared = self.repository.delete_for_phones(dict.fromkeys(variants))
            self.logger.info(f"Cleared {cleared} verification codes for {mask_phone(raw)}")
            return cleared

    @BaseService.measure_operation("sweep_expired")
    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete inert records issued before the retention window.

        Rows younger than the rate window are kept so issuance counting
        still sees them.
        """
        reference = as_utc(now) if now is not None else self.now()
        retention = max(RATE_WINDOW, timedelta(seconds=self.policy.code_ttl_seconds))
        with self.transaction():
            removed = self.repository.delete_stale(reference, reference - retention)
        if removed:
            self.logger.info(f"Swept {removed} stale verification codes")
        return removed

    def count_issued_since(self, phone: str, since: datetime) -> int:
        with self.transaction():
            return self.repository.count_issued_since(phone, as_utc(since))

    def oldest_issued_since(self, phone: str, since: datetime) -> Optional[datetime]:
        with self.transaction():
            oldest = self.repository.oldest_issued_since(phone, as_utc(since))
        return as_utc(oldest) if oldest is not None else None
