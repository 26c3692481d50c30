# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from contracthub.api.deps import AdminDep
from contracthub.db import SessionDep
from contracthub.schemas.analytics import AnalyticsResponse, AuditLogListResponse
from contracthub.services import analytics as analytics_service

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.get("", response_model=AnalyticsResponse)
async def get_analytics(session: SessionDep, auth: AdminDep) -> AnalyticsResponse:
    """Contract, request and user statistics (admin only)."""
    return await analytics_service.get_analytics(session)


@analytics_router.get("/activity", response_model=AuditLogListResponse)
async def recent_activity(
    session: SessionDep,
    auth: AdminDep,
    entity_type: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> AuditLogListResponse:
    """Recent audit-log entries, newest first (admin only)."""
    return await analytics_service.query_audit_log(
        session,
        entity_type=entity_type,
        action=action,
        actor_id=actor_id,
        offset=offset,
        limit=limit,
    )
