# ruff: noqa: B008
"""Endpoints driving the contract status engine: reconciliation, expiry queries, scheduler hook."""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import APIRouter, Depends, Query

from contracthub.api.deps import AdminDep, AuthDep, verify_cron_token
from contracthub.db import SessionDep
from contracthub.models.base import now_utc
from contracthub.models.enums import ContractStatus
from contracthub.schemas.status import (
    CronRunResponse,
    CronStatusResponse,
    ExpiredContractsResponse,
    ExpiringContractsResponse,
    NotificationSummaryResponse,
    ReconciliationResponse,
    StatusUpdateResponse,
)
from contracthub.services import status as status_service
from contracthub.services.company import get_notification_settings
from contracthub.services.contract import build_contract_responses

logger = logging.getLogger(__name__)

status_router = APIRouter(prefix="/contracts", tags=["contract-status"])


def _to_update_response(update: status_service.StatusUpdate) -> StatusUpdateResponse:
    return StatusUpdateResponse(
        contract_id=update.contract_id,
        old_status=ContractStatus(update.old_status),
        new_status=ContractStatus(update.new_status),
        reason=update.reason,
        updated_at=update.updated_at,
    )


def _to_reconciliation_response(result: status_service.ReconciliationResult) -> ReconciliationResponse:
    return ReconciliationResponse(
        updated_count=result.updated_count,
        processed=result.processed,
        errors=result.errors,
        updates=[_to_update_response(u) for u in result.updates],
    )


@status_router.post("/status", response_model=ReconciliationResponse)
async def reconcile_statuses(session: SessionDep, auth: AdminDep) -> ReconciliationResponse:
    """Recompute every non-terminated contract's status now (admin only)."""
    result = await status_service.reconcile_all(session)
    return _to_reconciliation_response(result)


@status_router.get("/status", response_model=ExpiringContractsResponse)
async def expiring_contracts(
    session: SessionDep,
    auth: AuthDep,
    days: int | None = Query(default=None, ge=0, le=3650),
) -> ExpiringContractsResponse:
    """Contracts ending within ``days`` (default: the company's expiring window)."""
    if days is None:
        days = (await get_notification_settings(session)).expiring_contract_days
    contracts = await status_service.get_expiring_contracts(session, days)
    items = await build_contract_responses(session, contracts)
    return ExpiringContractsResponse(days=days, items=items, count=len(items))


@status_router.get("/status/expired", response_model=ExpiredContractsResponse)
async def expired_contracts(session: SessionDep, auth: AuthDep) -> ExpiredContractsResponse:
    """Contracts already marked expired, most recent end date first."""
    contracts = await status_service.get_expired_contracts(session)
    items = await build_contract_responses(session, contracts)
    return ExpiredContractsResponse(items=items, count=len(items))


@status_router.get("/notifications", response_model=NotificationSummaryResponse)
async def notification_summary(session: SessionDep, auth: AuthDep) -> NotificationSummaryResponse:
    """Dashboard notification flags derived from the company settings."""
    summary = await status_service.get_notification_summary(session)
    return NotificationSummaryResponse(
        enabled=summary.enabled,
        email_notifications=summary.email_notifications,
        expiring_contract_days=summary.expiring_contract_days,
        reminder_frequency=summary.reminder_frequency,
        check_interval_minutes=summary.check_interval_minutes,
        expiring=await build_contract_responses(session, summary.expiring),
        expired_count=summary.expired_count,
    )


@status_router.post("/cron", response_model=CronRunResponse, dependencies=[Depends(verify_cron_token)])
async def cron_reconcile(session: SessionDep) -> CronRunResponse:
    """Reconciliation entry point for external schedulers.

    Guarded by ``Authorization: Bearer <CRON_SECRET_TOKEN>`` when the token
    is configured.
    """
    logger.info("Starting scheduled contract status update")
    started = time.perf_counter()
    result = await status_service.reconcile_all(session)
    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "Scheduled contract status update completed in %dms, updated %d contracts",
        duration_ms,
        result.updated_count,
    )

    base = _to_reconciliation_response(result)
    return CronRunResponse(**base.model_dump(), duration_ms=duration_ms, timestamp=now_utc())


@status_router.get("/cron", response_model=CronStatusResponse)
async def cron_status(session: SessionDep) -> CronStatusResponse:
    """Report that the scheduler hook is reachable, with current expiry counts."""
    expiring = await status_service.get_expiring_contracts(session)
    expired_count = await status_service.count_expired_contracts(session)
    return CronStatusResponse(
        expiring_contracts_count=len(expiring),
        expired_contracts_count=expired_count,
        last_checked=now_utc(),
    )


@status_router.post("/{contract_id}/status", response_model=StatusUpdateResponse | None)
async def reconcile_one(contract_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> StatusUpdateResponse | None:
    """Recompute a single contract's status (admin only). Returns null when unchanged."""
    update = await status_service.reconcile_contract(session, contract_id)
    return _to_update_response(update) if update is not None else None
