"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from catalog_service.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="catalog-service",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if service is ready to accept requests.

    With the SQL backend the database must answer a trivial query.

    Returns:
        Readiness status; 503 when the database is unreachable.
    """
    if settings.store_backend == "sql":
        from catalog_service.infrastructure.database import get_engine

        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database not ready", error=str(e))
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable", "store_backend": "sql"},
            )

    return JSONResponse(content={"status": "ready", "store_backend": settings.store_backend})
