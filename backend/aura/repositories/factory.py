# backend/aura/repositories/factory.py
"""
Repository Factory for the Aura backend

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from aura.repositories.user_repository import UserRepository
    from aura.repositories.verification_code_repository import VerificationCodeRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services and tests can swap
    implementations in one place.
    """

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """Create repository for user lookups."""
        from aura.repositories.user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_verification_code_repository(db: Session) -> "VerificationCodeRepository":
        """Create repository for verification code persistence."""
        from aura.repositories.verification_code_repository import VerificationCodeRepository

        return VerificationCodeRepository(db)
