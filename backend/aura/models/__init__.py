"""SQLAlchemy models registered on the shared declarative Base."""

from aura.models.user import User
from aura.models.verification_code import VerificationCode

__all__ = ["User", "VerificationCode"]
