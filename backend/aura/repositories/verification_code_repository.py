# backend/aura/repositories/verification_code_repository.py
"""
Verification Code Repository for the Aura backend

Data access for one-time verification codes. Every query that targets the
"open" record of a phone filters on both ``consumed_at`` and
``superseded_at`` being NULL, mirroring the partial unique index on the
table.
"""

from datetime import datetime
import logging
from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura.core.exceptions import RepositoryException
from aura.models.verification_code import VerificationCode
from aura.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class VerificationCodeRepository(BaseRepository[VerificationCode]):
    """Repository for VerificationCode data access."""

    def __init__(self, db: Session):
        super().__init__(db, VerificationCode)
        self.logger = logging.getLogger(__name__)

    def _open_for_phone(self, phone: str):
        return self.db.query(VerificationCode).filter(
            VerificationCode.phone == phone,
            VerificationCode.consumed_at.is_(None),
            VerificationCode.superseded_at.is_(None),
        )

    def get_open_for_update(self, phone: str) -> Optional[VerificationCode]:
        """
        Get the open record for a phone, locking its row until commit.

        SQLite ignores FOR UPDATE; callers serialize through the store's
        per-phone lock there.
        """
        try:
            return self._open_for_phone(phone).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading open verification code: {str(e)}")
            raise RepositoryException(f"Failed to load verification code: {str(e)}")

    def supersede_open(self, phone: str, superseded_at: datetime) -> int:
        """Mark every open record for a phone as superseded. Returns rows touched."""
        try:
            count = self._open_for_phone(phone).update(
                {VerificationCode.superseded_at: superseded_at},
                synchronize_session=False,
            )
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error superseding verification codes: {str(e)}")
            raise RepositoryException(f"Failed to supersede verification codes: {str(e)}")

    def increment_attempts(self, record: VerificationCode) -> VerificationCode:
        try:
            record.attempts = (record.attempts or 0) + 1
            self.db.flush()
            return record
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording failed attempt: {str(e)}")
            raise RepositoryException(f"Failed to record attempt: {str(e)}")

    def mark_consumed(self, record: VerificationCode, consumed_at: datetime) -> VerificationCode:
        try:
            record.consumed_at = consumed_at
            self.db.flush()
            return record
        except SQLAlchemyError as e:
            self.logger.error(f"Error consuming verification code: {str(e)}")
            raise RepositoryException(f"Failed to consume verification code: {str(e)}")

    def count_issued_since(self, phone: str, since: datetime) -> int:
        """Count records issued for a phone at or after ``since``, superseded ones included."""
        try:
            return (
                self.db.query(VerificationCode)
                .filter(VerificationCode.phone == phone, VerificationCode.issued_at >= since)
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting issued verification codes: {str(e)}")
            raise RepositoryException(f"Failed to count verification codes: {str(e)}")

    def oldest_issued_since(self, phone: str, since: datetime) -> Optional[datetime]:
        try:
            return (
                self.db.query(func.min(VerificationCode.issued_at))
                .filter(VerificationCode.phone == phone, VerificationCode.issued_at >= since)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading issuance history: {str(e)}")
            raise RepositoryException(f"Failed to read issuance history: {str(e)}")

    def delete_for_phones(self, phones: Iterable[str]) -> int:
        """Delete every record, open or not, stored under any of ``phones``."""
        values = list(phones)
        if not values:
            return 0
        try:
            count = (
                self.db.query(VerificationCode)
                .filter(VerificationCode.phone.in_(values))
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error clearing verification codes: {str(e)}")
            raise RepositoryException(f"Failed to clear verification codes: {str(e)}")

    def delete_all(self) -> int:
        try:
            count = self.db.query(VerificationCode).delete(synchronize_session=False)
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error clearing all verification codes: {str(e)}")
            raise RepositoryException(f"Failed to clear verification codes: {str(e)}")

    def delete_stale(self, now: datetime, issued_before: datetime) -> int:
        """
        Delete records that can no longer be confirmed and are older than
        the retention window.

        Args:
            now: Reference time for expiry
            issued_before: Only rows issued strictly before this are removed

        Returns:
            Number of rows deleted
        """
        try:
            count = (
                self.db.query(VerificationCode)
                .filter(
                    VerificationCode.issued_at < issued_before,
                    or_(
                        VerificationCode.consumed_at.isnot(None),
                        VerificationCode.superseded_at.isnot(None),
                        VerificationCode.expires_at <= now,
                    ),
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error sweeping verification codes: {str(e)}")
            raise RepositoryException(f"Failed to sweep verification codes: {str(e)}")
