# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ContractStats(BaseModel):
    total: int
    active: int
    expiring: int
    expired: int
    terminated: int
    by_status: dict[str, int]
    by_type: dict[str, int]


class RequestStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int


class AnalyticsResponse(BaseModel):
    """Response for GET /analytics."""

    contracts: ContractStats
    requests: RequestStats
    users: int
    generated_at: datetime


class AuditLogEntryResponse(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogEntryResponse]
    total: int
