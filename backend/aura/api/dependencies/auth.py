# backend/aura/api/dependencies/auth.py
"""
Access control for administrative verification tools.

The tools are open in development environments. Anywhere else they need
the configured admin token in the ``X-Admin-Token`` header, and stay closed
when no token is configured.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from aura.core.config import settings
from aura.core.exceptions import ForbiddenException

logger = logging.getLogger(__name__)


def require_admin_access(x_admin_token: Optional[str] = Header(default=None)) -> None:
    if settings.is_development:
        return

    configured = settings.admin_token.get_secret_value() if settings.admin_token else ""
    if configured and x_admin_token and hmac.compare_digest(
        configured.encode("utf-8"), x_admin_token.encode("utf-8")
    ):
        return

    logger.warning("Rejected admin verification request in %s", settings.environment)
    raise ForbiddenException(
        "Admin verification tools are only available in development",
        code="ADMIN_ONLY",
    )
