# backend/aura/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Configuration is read
from settings once and handed to services as explicit objects.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from aura.api.dependencies.database import get_db
from aura.core.config import DeliveryConfig, VerificationPolicy, settings
from aura.services.delivery_router import DeliveryRouter
from aura.services.verification_service import VerificationService
from aura.services.verification_store import Clock, VerificationStore, utcnow

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_delivery_config() -> DeliveryConfig:
    """Channel credentials, built once from settings."""
    return settings.delivery_config()


@lru_cache(maxsize=1)
def get_verification_policy() -> VerificationPolicy:
    return settings.verification_policy()


def get_clock() -> Clock:
    return utcnow


@lru_cache(maxsize=1)
def get_delivery_router_singleton() -> DeliveryRouter:
    """
    Router shared across requests.

    The Twilio client and channel settings are reused; each send opens its
    own HTTP client.
    """
    return DeliveryRouter(get_delivery_config())


def get_delivery_router() -> DeliveryRouter:
    """Get delivery router instance for dependency injection."""
    return get_delivery_router_singleton()


def get_verification_store(
    db: Session = Depends(get_db),
    policy: VerificationPolicy = Depends(get_verification_policy),
    clock: Clock = Depends(get_clock),
) -> VerificationStore:
    """Get VerificationStore instance bound to the request session."""
    return VerificationStore(db, policy, clock=clock)


def get_verification_service(
    db: Session = Depends(get_db),
    router: DeliveryRouter = Depends(get_delivery_router),
    policy: VerificationPolicy = Depends(get_verification_policy),
    store: VerificationStore = Depends(get_verification_store),
) -> VerificationService:
    """
    Get VerificationService instance with dependencies.

    Args:
        db: Database session
        router: Delivery router for sending codes
        policy: Code lifetime, attempt and rate limits
        store: Verification store sharing the same session

    Returns:
        VerificationService instance
    """
    return VerificationService(db, router, policy, store=store)
