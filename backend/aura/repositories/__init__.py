# backend/aura/repositories/__init__.py
"""
Repository layer for the Aura backend.

Repositories own the queries; services own the transactions.

Usage:
    from aura.repositories import RepositoryFactory

    repository = RepositoryFactory.create_verification_code_repository(db)
    record = repository.get_open_for_update(phone)
"""

from aura.repositories.base_repository import BaseRepository
from aura.repositories.factory import RepositoryFactory
from aura.repositories.user_repository import UserRepository
from aura.repositories.verification_code_repository import VerificationCodeRepository

__all__ = [
    "BaseRepository",
    "RepositoryFactory",
    "UserRepository",
    "VerificationCodeRepository",
]
