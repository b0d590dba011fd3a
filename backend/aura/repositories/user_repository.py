# backend/aura/repositories/user_repository.py
"""
User Repository for the Aura backend

Read-only lookups the verification flow needs from the marketplace's
users table.
"""

import logging
from typing import Any, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura.core.exceptions import RepositoryException
from aura.models.user import User
from aura.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_by_id(self, id: Any) -> Optional[User]:
        """
        Get user by ID.

        Used by: VerificationService.validate_session
        """
        if id is None:
            return None
        return super().get_by_id(str(id))

    def get_active_by_phone(self, phone: str) -> Optional[User]:
        """
        Get the active user registered with a canonical phone.

        Used by: VerificationService.confirm_code
        """
        try:
            return cast(
                Optional[User],
                self.db.query(User)
                .filter(User.phone == phone, User.is_active.is_(True))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by phone: {str(e)}")
            raise RepositoryException(f"Failed to retrieve user: {str(e)}")
