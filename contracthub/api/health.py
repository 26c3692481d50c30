import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from contracthub.config import get_settings
from contracthub.db import SessionDep
from contracthub.models.base import now_utc

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness plus database reachability, for load balancers and the scheduler."""

    status: Literal["ok", "degraded"]
    app: str
    version: str
    environment: str
    database: Literal["up", "down"]
    checked_at: datetime


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report whether the API can reach its database. Always answers 200."""
    settings = get_settings()
    database: Literal["up", "down"] = "up"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        checked_at=now_utc(),
    )
