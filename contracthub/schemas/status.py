# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from contracthub.models.enums import ContractStatus, ReminderFrequency
from contracthub.schemas.contract import ContractResponse


class StatusUpdateResponse(BaseModel):
    """One status transition applied by reconciliation."""

    contract_id: uuid.UUID
    old_status: ContractStatus
    new_status: ContractStatus
    reason: str
    updated_at: datetime


class ReconciliationResponse(BaseModel):
    """Response from POST /contracts/status."""

    updated_count: int
    processed: int
    errors: int
    updates: list[StatusUpdateResponse]


class CronRunResponse(ReconciliationResponse):
    """Response from the scheduler endpoint, with timing."""

    duration_ms: int
    timestamp: datetime


class CronStatusResponse(BaseModel):
    """Response from GET /contracts/cron."""

    expiring_contracts_count: int
    expired_contracts_count: int
    last_checked: datetime


class ExpiringContractsResponse(BaseModel):
    days: int
    items: list[ContractResponse]
    count: int


class ExpiredContractsResponse(BaseModel):
    items: list[ContractResponse]
    count: int


class NotificationSummaryResponse(BaseModel):
    """Dashboard notification flags computed from the company settings."""

    enabled: bool
    email_notifications: bool
    expiring_contract_days: int
    reminder_frequency: ReminderFrequency
    check_interval_minutes: int
    expiring: list[ContractResponse]
    expired_count: int
