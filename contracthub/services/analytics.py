"""Dashboard statistics and recent activity from the audit log."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from contracthub.models.audit import AuditLog
from contracthub.models.base import now_utc
from contracthub.models.contract import Contract
from contracthub.models.enums import ContractStatus, RequestStatus
from contracthub.models.request import ContractRequest
from contracthub.models.user import User
from contracthub.schemas.analytics import (
    AnalyticsResponse,
    AuditLogEntryResponse,
    AuditLogListResponse,
    ContractStats,
    RequestStats,
)

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

EXPIRING_WINDOW_DAYS = 30


async def _grouped_counts(session: AsyncSession, column: object) -> dict[str, int]:
    result = await session.execute(select(column, func.count()).group_by(column))  # ty: ignore[no-matching-overload]
    return {str(key): count for key, count in result.all()}


async def get_analytics(session: AsyncSession, now: datetime | None = None) -> AnalyticsResponse:
    """Contract, request and user counts for the admin dashboard."""
    now = now or now_utc()

    by_status = await _grouped_counts(session, col(Contract.status))
    by_type = await _grouped_counts(session, col(Contract.type))

    expiring_result = await session.execute(
        select(func.count())
        .select_from(Contract)
        .where(
            col(Contract.status).in_([ContractStatus.ACTIVE.value, ContractStatus.EXPIRING_SOON.value]),
            col(Contract.end_date).is_not(None),
            col(Contract.end_date) >= now,
            col(Contract.end_date) <= now + timedelta(days=EXPIRING_WINDOW_DAYS),
        )
    )

    requests_by_status = await _grouped_counts(session, col(ContractRequest.status))
    users_result = await session.execute(select(func.count()).select_from(User))

    return AnalyticsResponse(
        contracts=ContractStats(
            total=sum(by_status.values()),
            active=by_status.get(ContractStatus.ACTIVE.value, 0),
            expiring=expiring_result.scalar_one(),
            expired=by_status.get(ContractStatus.EXPIRED.value, 0),
            terminated=by_status.get(ContractStatus.TERMINATED.value, 0),
            by_status=by_status,
            by_type=by_type,
        ),
        requests=RequestStats(
            total=sum(requests_by_status.values()),
            pending=requests_by_status.get(RequestStatus.PENDING.value, 0),
            approved=requests_by_status.get(RequestStatus.APPROVED.value, 0),
            rejected=requests_by_status.get(RequestStatus.REJECTED.value, 0),
        ),
        users=users_result.scalar_one(),
        generated_at=now,
    )


async def query_audit_log(
    session: AsyncSession,
    *,
    entity_type: str | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters, newest first."""
    filters = []
    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_id=e.actor_id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )
