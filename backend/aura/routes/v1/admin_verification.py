# backend/aura/routes/v1/admin_verification.py
"""
Verification admin tools - API v1

Development and operations helpers under /api/v1/admin. Open in
development environments; elsewhere they require the X-Admin-Token header.

Endpoints:
    POST /verification-codes/clear   → Delete codes for one phone or all phones
    GET /delivery-status             → Channel configuration with masked secrets
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from aura.api.dependencies.auth import require_admin_access
from aura.api.dependencies.services import get_delivery_router, get_verification_store
from aura.schemas.phone_verification import (
    ClearVerificationCodesRequest,
    ClearVerificationCodesResponse,
    DeliveryStatusResponse,
)
from aura.services.delivery_router import DeliveryRouter
from aura.services.verification_store import ALL, VerificationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-verification-v1"], dependencies=[Depends(require_admin_access)])


@router.post("/verification-codes/clear", response_model=ClearVerificationCodesResponse)
async def clear_verification_codes(
    payload: ClearVerificationCodesRequest,
    store: VerificationStore = Depends(get_verification_store),
) -> ClearVerificationCodesResponse:
    """
    Delete verification codes.

    A phone also matches rows saved in older formats (with or without the
    leading "+"); ``clear_all`` wipes the table.
    """
    target = ALL if payload.clear_all else payload.phone
    cleared = await asyncio.to_thread(store.clear, target)
    return ClearVerificationCodesResponse(cleared=cleared)


@router.get("/delivery-status", response_model=DeliveryStatusResponse)
async def delivery_status(
    delivery_router: DeliveryRouter = Depends(get_delivery_router),
) -> DeliveryStatusResponse:
    """Report which delivery channels are configured without sending anything."""
    return DeliveryStatusResponse.model_validate(delivery_router.get_status())
