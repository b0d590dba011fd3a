# backend/aura/main.py
"""
Aura phone verification API.

Run with:
    uvicorn aura.main:app --reload
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from aura import __version__
from aura.api.dependencies.services import get_delivery_router
from aura.core.config import settings
from aura.database import init_db
from aura.errors import register_error_handlers
from aura.routes import health
from aura.routes.v1 import admin_verification as admin_verification_v1
from aura.routes.v1 import auth as auth_v1

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _validate_startup_config() -> None:
    """Surface delivery misconfiguration at boot instead of on the first sign-in."""
    status = get_delivery_router().get_status()
    for warning in status.warnings:
        if settings.is_production:
            logger.error("Delivery configuration: %s", warning)
        else:
            logger.warning("Delivery configuration: %s", warning)
    logger.info(
        "Verification codes will be sent via %s (simulation %s)",
        status.primary_channel,
        "allowed" if status.simulated_allowed else "disabled",
    )


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("Aura API starting up...")
    logger.info(f"Environment: {settings.environment}")

    init_db()
    _validate_startup_config()

    yield

    logger.info("Aura API shutting down...")


app = FastAPI(
    title="Aura API",
    description="Phone verification and code delivery for the Aura marketplace",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth_v1.router, prefix="/auth")
api_v1.include_router(admin_verification_v1.router, prefix="/admin")

app.include_router(api_v1)
app.include_router(health.router)
