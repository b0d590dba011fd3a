# backend/aura/models/user.py
"""
User model as seen by the verification core.

The marketplace application owns the full users table (profiles, roles,
ratings). Verification only reads the identifier, the phone it was
registered with and whether the account is still active.
"""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from aura.database import Base


class User(Base):
    """Read-only view of a marketplace account."""

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    phone = Column(String(20), nullable=True, index=True)
    name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<User {self.id} active={self.is_active}>"
