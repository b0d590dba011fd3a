# backend/aura/models/verification_code.py

from sqlalchemy import Column, DateTime, Index, Integer, String, text
import ulid

from aura.database import Base

_OPEN_RECORD_CLAUSE = "consumed_at IS NULL AND superseded_at IS NULL"


class VerificationCode(Base):
    """
    One issued one-time code for a phone.

    A record is open while neither ``consumed_at`` nor ``superseded_at`` is
    set, and active while it is open and not yet expired. The partial unique
    index keeps at most one open record per phone.
    """

    __tablename__ = "verification_codes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    phone = Column(String(20), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    superseded_at = Column(DateTime(timezone=True), nullable=True)
    attempts = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index(
            "uq_verification_codes_open_phone",
            "phone",
            unique=True,
            postgresql_where=text(_OPEN_RECORD_CLAUSE),
            sqlite_where=text(_OPEN_RECORD_CLAUSE),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.consumed_at is None and self.superseded_at is None

    def __repr__(self) -> str:
        return f"<VerificationCode {self.id} for {self.phone[-4:]} attempts={self.attempts}>"
