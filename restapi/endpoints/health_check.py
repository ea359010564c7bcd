"""Health check endpoint for monitoring application status."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from components.core import schemas
from components.core.init_db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health_check",
    tags=["services"],
    responses={200: {"description": "Service is healthy"}},
)


@router.get("/", response_model=schemas.HealthCheck)
async def health_check(db: AsyncSession = Depends(get_db)) -> schemas.HealthCheck:
    """Check the health status of the service and its database."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return schemas.HealthCheck(service_name="Plan Service", status="degraded", database="unavailable")
    return schemas.HealthCheck(service_name="Plan Service", status="healthy", database="ok")
