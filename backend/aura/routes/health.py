# backend/aura/routes/health.py
"""
Health and metrics endpoints.

Used by load balancers and Prometheus scrapers; neither touches the
delivery channels.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aura import __version__
from aura.api.dependencies.database import get_db
from aura.core.config import settings
from aura.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    version: str
    environment: str
    database: bool
    timestamp: datetime


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        "healthy" when the database answers, "degraded" otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = False
        status = "degraded"

    return HealthCheckResponse(
        status=status,
        version=__version__,
        environment=settings.environment,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus exposition of service, delivery and confirmation metrics."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
