"""Contract status engine: status calculation, reconciliation and expiry queries.

A contract's ``status`` is a cached value derived from its dates and the
company's notification thresholds. ``reconcile_all`` refreshes that cache for
every non-terminated contract and appends a ``status_history`` entry for each
transition. It is run by the worker, by the cron endpoint and by admins.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col

from contracthub.config import get_settings
from contracthub.exceptions import NotFoundError
from contracthub.models.base import ensure_utc, now_utc
from contracthub.models.contract import Contract
from contracthub.models.enums import ContractStatus, ReminderFrequency
from contracthub.services.company import get_notification_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contracthub.schemas.company import ContractNotificationSettings

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

_SECONDS_PER_DAY = 86400

_CHECK_INTERVAL_MINUTES = {
    ReminderFrequency.DAILY: 24 * 60,
    ReminderFrequency.WEEKLY: 7 * 24 * 60,
    ReminderFrequency.MONTHLY: 30 * 24 * 60,
}

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass
class StatusUpdate:
    """A single status transition applied to a contract."""

    contract_id: uuid.UUID
    old_status: str
    new_status: str
    reason: str
    updated_at: datetime


@dataclass
class ReconciliationResult:
    """Summary of a reconciliation run."""

    started_at: datetime
    processed: int = 0
    errors: int = 0
    updates: list[StatusUpdate] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.updates)


@dataclass
class NotificationSummary:
    """Dashboard notification flags. Nothing is delivered from here."""

    enabled: bool
    email_notifications: bool
    expiring_contract_days: int
    reminder_frequency: ReminderFrequency
    check_interval_minutes: int
    expiring: list[Contract]
    expired_count: int


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def days_until(end_date: datetime, now: datetime) -> int:
    """Whole days from now until end_date, rounded up. Negative once end_date has passed."""
    delta = ensure_utc(end_date) - ensure_utc(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def calculate_status(
    start_date: datetime,
    end_date: datetime | None,
    settings: ContractNotificationSettings,
    now: datetime | None = None,
) -> ContractStatus:
    """Derive a contract's status from its dates and the company thresholds.

    - not started yet: PENDING
    - no end date (CDI): ACTIVE
    - more than ``expired_contract_grace_days`` past the end: EXPIRED
    - ending within ``expiring_contract_days`` (inclusive): EXPIRING_SOON
    - otherwise ACTIVE
    """
    now = ensure_utc(now) if now is not None else now_utc()

    if ensure_utc(start_date) > now:
        return ContractStatus.PENDING

    if end_date is None:
        return ContractStatus.ACTIVE

    diff_days = days_until(end_date, now)

    if diff_days < -settings.expired_contract_grace_days:
        return ContractStatus.EXPIRED

    if diff_days <= settings.expiring_contract_days:
        return ContractStatus.EXPIRING_SOON

    return ContractStatus.ACTIVE


def format_locale_date(value: datetime) -> str:
    """Short en-US date, e.g. ``3/7/2025``."""
    value = ensure_utc(value)
    return f"{value.month}/{value.day}/{value.year}"


def status_change_reason(
    old_status: str,
    new_status: ContractStatus,
    end_date: datetime | None,
    settings: ContractNotificationSettings,
    now: datetime,
) -> str:
    """Human-readable reason recorded in the status history."""
    if new_status == ContractStatus.EXPIRED:
        expired_on = format_locale_date(end_date) if end_date is not None else "unknown date"
        return f"Contract expired on {expired_on}"

    if new_status == ContractStatus.EXPIRING_SOON:
        remaining = days_until(end_date, now) if end_date is not None else 0
        return (
            f"Contract expires in {remaining} days "
            f"(notification set for {settings.expiring_contract_days} days)"
        )

    if new_status == ContractStatus.ACTIVE and old_status == ContractStatus.EXPIRING_SOON:
        return "Contract end date was extended"

    return f"Status changed from {old_status} to {new_status}"


def append_status_history(
    contract: Contract,
    *,
    new_status: ContractStatus,
    reason: str,
    updated_by: str,
    now: datetime,
) -> dict[str, Any]:
    """Set the contract's status and append the matching history entry.

    The history list is replaced by an extended copy so the JSON column is
    flagged dirty; existing entries are never modified.
    """
    entry: dict[str, Any] = {
        "status": new_status.value,
        "previous_status": contract.status,
        "updated_at": now.isoformat(),
        "reason": reason,
        "updated_by": updated_by,
    }
    contract.status = new_status.value
    contract.last_status_update = now
    contract.status_history = [*(contract.status_history or []), entry]
    return entry


def _apply_calculated_status(
    contract: Contract,
    settings: ContractNotificationSettings,
    now: datetime,
) -> StatusUpdate | None:
    """Recompute one contract in memory. Returns the update, or None if unchanged."""
    old_status = contract.status
    new_status = calculate_status(contract.start_date, contract.end_date, settings, now)
    if new_status == old_status:
        return None

    reason = status_change_reason(old_status, new_status, contract.end_date, settings, now)
    append_status_history(contract, new_status=new_status, reason=reason, updated_by=SYSTEM_ACTOR, now=now)
    return StatusUpdate(
        contract_id=contract.id,
        old_status=old_status,
        new_status=new_status.value,
        reason=reason,
        updated_at=now,
    )


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


async def reconcile_all(
    session: AsyncSession,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> ReconciliationResult:
    """Recompute the status of every non-terminated contract.

    Contracts are read in pages ordered by id. Each page's changes are
    flushed and committed as one batch. A failing page is rolled back,
    logged and counted in ``errors``; earlier pages stay applied. Running
    the job again is the recovery path.
    """
    now = ensure_utc(now) if now is not None else now_utc()
    batch_size = batch_size or get_settings().reconcile_batch_size
    settings = await get_notification_settings(session)
    result = ReconciliationResult(started_at=now)

    last_id: uuid.UUID | None = None
    while True:
        query = (
            select(Contract)
            .where(col(Contract.status) != ContractStatus.TERMINATED.value)
            .order_by(col(Contract.id))
            .limit(batch_size)
        )
        if last_id is not None:
            query = query.where(col(Contract.id) > last_id)

        contracts = list((await session.execute(query)).scalars().all())
        if not contracts:
            break
        last_id = contracts[-1].id

        page_updates: list[StatusUpdate] = []
        for contract in contracts:
            result.processed += 1
            update = _apply_calculated_status(contract, settings, now)
            if update is not None:
                page_updates.append(update)

        if page_updates:
            try:
                await session.commit()
            except SQLAlchemyError:
                logger.exception("Failed to write %d contract status updates", len(page_updates))
                await session.rollback()
                result.errors += len(page_updates)
            else:
                result.updates.extend(page_updates)

        if len(contracts) < batch_size:
            break

    logger.info(
        "Contract status reconciliation: processed=%d updated=%d errors=%d",
        result.processed,
        result.updated_count,
        result.errors,
    )
    for update in result.updates:
        logger.info(
            "Contract %s: %s -> %s (%s)", update.contract_id, update.old_status, update.new_status, update.reason
        )
    return result


async def reconcile_contract(
    session: AsyncSession,
    contract_id: uuid.UUID,
    now: datetime | None = None,
) -> StatusUpdate | None:
    """Recompute a single contract's status. Terminated contracts are left as they are."""
    now = ensure_utc(now) if now is not None else now_utc()
    contract = (await session.execute(select(Contract).where(col(Contract.id) == contract_id))).scalar_one_or_none()
    if contract is None:
        raise NotFoundError("Contract not found")

    if contract.status == ContractStatus.TERMINATED:
        return None

    settings = await get_notification_settings(session)
    update = _apply_calculated_status(contract, settings, now)
    if update is not None:
        await session.commit()
    return update


# ---------------------------------------------------------------------------
# Expiry queries (read the persisted status only)
# ---------------------------------------------------------------------------


async def get_expiring_contracts(
    session: AsyncSession,
    days: int | None = None,
    now: datetime | None = None,
) -> list[Contract]:
    """Active or expiring-soon contracts whose end date falls in [now, now + days], soonest first."""
    now = ensure_utc(now) if now is not None else now_utc()
    if days is None:
        days = (await get_notification_settings(session)).expiring_contract_days

    result = await session.execute(
        select(Contract)
        .where(
            col(Contract.status).in_([ContractStatus.ACTIVE.value, ContractStatus.EXPIRING_SOON.value]),
            col(Contract.end_date).is_not(None),
            col(Contract.end_date) >= now,
            col(Contract.end_date) <= now + timedelta(days=days),
        )
        .order_by(col(Contract.end_date).asc())
    )
    return list(result.scalars().all())


async def get_expired_contracts(session: AsyncSession, now: datetime | None = None) -> list[Contract]:
    """Contracts marked expired whose end date is in the past, most recent first."""
    now = ensure_utc(now) if now is not None else now_utc()
    result = await session.execute(
        select(Contract)
        .where(
            col(Contract.status) == ContractStatus.EXPIRED.value,
            col(Contract.end_date).is_not(None),
            col(Contract.end_date) < now,
        )
        .order_by(col(Contract.end_date).desc())
    )
    return list(result.scalars().all())


async def count_expired_contracts(session: AsyncSession, now: datetime | None = None) -> int:
    now = ensure_utc(now) if now is not None else now_utc()
    result = await session.execute(
        select(func.count())
        .select_from(Contract)
        .where(
            col(Contract.status) == ContractStatus.EXPIRED.value,
            col(Contract.end_date).is_not(None),
            col(Contract.end_date) < now,
        )
    )
    return result.scalar_one()


async def get_notification_summary(session: AsyncSession, now: datetime | None = None) -> NotificationSummary:
    """Compute the dashboard notification flags and the contracts they refer to.

    When notifications or dashboard notifications are switched off the
    contract list is empty.
    """
    settings = await get_notification_settings(session)

    enabled = settings.enabled and settings.dashboard_notifications
    expiring: list[Contract] = []
    expired_count = 0
    if enabled:
        expiring = await get_expiring_contracts(session, settings.expiring_contract_days, now)
        expired_count = await count_expired_contracts(session, now)

    return NotificationSummary(
        enabled=enabled,
        email_notifications=settings.enabled and settings.email_notifications,
        expiring_contract_days=settings.expiring_contract_days,
        reminder_frequency=settings.reminder_frequency,
        check_interval_minutes=_CHECK_INTERVAL_MINUTES[settings.reminder_frequency],
        expiring=expiring,
        expired_count=expired_count,
    )
