# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from contracthub.exceptions import ConflictError, ForbiddenError, NotFoundError
from contracthub.models.base import ensure_utc, now_utc
from contracthub.models.contract import Contract
from contracthub.models.enums import (
    AuditAction,
    AuditEntityType,
    ContractStatus,
    RequestAction,
    RequestStatus,
    RequestType,
)
from contracthub.models.request import ContractRequest
from contracthub.schemas.request import RequestListResponse, RequestResponse
from contracthub.services.audit import model_to_audit_dict, write_audit_log
from contracthub.services.contract import get_contract_or_404
from contracthub.services.status import append_status_history

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contracthub.schemas.auth import AuthContext
    from contracthub.schemas.request import CreateRequestPayload, ProcessRequestPayload


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(request: ContractRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        employee_id=request.employee_id,
        contract_id=request.contract_id,
        type=RequestType(request.type),
        current_status=request.current_status,
        requested_status=request.requested_status,
        reason=request.reason,
        status=RequestStatus(request.status),
        admin_notes=request.admin_notes,
        processed_by=request.processed_by,
        processed_at=request.processed_at,
        created_at=request.created_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> ContractRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    result = await session.execute(select(ContractRequest).where(col(ContractRequest.id) == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")
    return request


async def _check_no_pending_request(session: AsyncSession, contract_id: uuid.UUID) -> None:
    """Raise 409 if the contract already has a pending request."""
    result = await session.execute(
        select(ContractRequest.id).where(
            col(ContractRequest.contract_id) == contract_id,
            col(ContractRequest.status) == RequestStatus.PENDING.value,
        )
    )
    if result.first() is not None:
        raise ConflictError("There is already a pending request for this contract")


def resolve_target_status(request: ContractRequest, current_status: str) -> ContractStatus:
    """Contract status an approval of this request leads to."""
    if request.type == RequestType.TERMINATION:
        return ContractStatus.TERMINATED
    if request.type == RequestType.RENEWAL:
        return ContractStatus.ACTIVE
    if request.type == RequestType.STATUS_CHANGE and request.requested_status:
        return ContractStatus(request.requested_status)
    return ContractStatus(current_status)


def approval_reason(request_type: str, admin_notes: str | None) -> str:
    """History reason for an approved request, e.g. ``termination approved by admin: end of project``."""
    reason = f"{request_type} approved by admin"
    if admin_notes:
        reason = f"{reason}: {admin_notes}"
    return reason


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Create a pending request on one of the caller's own contracts.

    Flow:
    1. Resolve the contract (404).
    2. Ownership check (403).
    3. At most one pending request per contract (409).
    4. Snapshot the contract's current status.
    5. Audit log and commit.
    """
    contract = await get_contract_or_404(session, payload.contract_id)

    if contract.employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to request changes on this contract")

    await _check_no_pending_request(session, contract.id)

    contract_request = ContractRequest(
        employee_id=auth.user_id,
        contract_id=contract.id,
        type=payload.type.value,
        current_status=contract.status,
        requested_status=(
            payload.requested_status.value
            if payload.type == RequestType.STATUS_CHANGE and payload.requested_status is not None
            else None
        ),
        reason=payload.reason or f"{payload.type.value} requested by employee",
        status=RequestStatus.PENDING.value,
    )
    session.add(contract_request)

    try:
        await session.flush()
    except IntegrityError:
        # Lost a race against another pending request for the same contract.
        await session.rollback()
        raise ConflictError("There is already a pending request for this contract") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=contract_request.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(contract_request),
    )

    await session.commit()
    await session.refresh(contract_request)
    return build_request_response(contract_request)


async def process_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: ProcessRequestPayload,
    now: datetime | None = None,
) -> RequestResponse:
    """Approve or reject a pending request (admin only).

    Approval also moves the contract to the status implied by the request
    type and appends a status history entry. Request and contract are
    committed together, so a failure leaves neither changed.
    """
    contract_request = await _get_request_or_404(session, payload.request_id)

    if contract_request.status != RequestStatus.PENDING.value:
        raise ConflictError("Request has already been processed")

    contract: Contract | None = None
    if payload.action == RequestAction.APPROVE:
        contract = await get_contract_or_404(session, contract_request.contract_id)

    now = ensure_utc(now) if now is not None else now_utc()
    before_dict = model_to_audit_dict(contract_request)

    contract_request.status = (
        RequestStatus.APPROVED.value if payload.action == RequestAction.APPROVE else RequestStatus.REJECTED.value
    )
    contract_request.processed_by = auth.user_id
    contract_request.processed_at = now
    contract_request.admin_notes = payload.admin_notes

    if contract is not None:
        append_status_history(
            contract,
            new_status=resolve_target_status(contract_request, contract.status),
            reason=approval_reason(contract_request.type, payload.admin_notes),
            updated_by=auth.name or str(auth.user_id),
            now=now,
        )

    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=contract_request.id,
        action=AuditAction.APPROVE if payload.action == RequestAction.APPROVE else AuditAction.REJECT,
        before_json=before_dict,
        after_json=model_to_audit_dict(contract_request),
    )

    await session.commit()
    await session.refresh(contract_request)
    return build_request_response(contract_request)


async def get_request(session: AsyncSession, auth: AuthContext, request_id: uuid.UUID) -> RequestResponse:
    """Get a single request. Employees may only read their own."""
    contract_request = await _get_request_or_404(session, request_id)
    if not auth.is_admin and contract_request.employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this request")
    return build_request_response(contract_request)


async def list_requests(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    status_filter: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, ordered by created_at DESC."""
    base_filters = []
    if employee_id is not None:
        base_filters.append(col(ContractRequest.employee_id) == employee_id)
    if status_filter is not None:
        base_filters.append(col(ContractRequest.status) == status_filter)

    count_result = await session.execute(select(func.count()).select_from(ContractRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(ContractRequest)
        .where(*base_filters)
        .order_by(col(ContractRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return RequestListResponse(
        items=[build_request_response(r) for r in requests],
        total=total,
    )


def _history_records_approval(entry: dict[str, Any], contract_request: ContractRequest) -> bool:
    """True if ``entry`` is the history entry written when this request was approved."""
    if not str(entry.get("reason", "")).startswith(approval_reason(contract_request.type, None)):
        return False
    if contract_request.processed_at is None or not entry.get("updated_at"):
        return False
    recorded_at = datetime.fromisoformat(str(entry["updated_at"]))
    return ensure_utc(recorded_at) == ensure_utc(contract_request.processed_at)


async def find_unapplied_approvals(session: AsyncSession) -> list[ContractRequest]:
    """Approved requests whose contract history has no entry for that approval.

    An approval's history entry carries the request's reason prefix and its
    ``processed_at`` as ``updated_at``. Approvals are committed in one
    transaction, so this only finds rows written by older code paths or by hand.
    """
    result = await session.execute(
        select(ContractRequest, Contract)
        .join(Contract, col(Contract.id) == col(ContractRequest.contract_id))
        .where(col(ContractRequest.status) == RequestStatus.APPROVED.value)
        .order_by(col(ContractRequest.processed_at))
    )
    unapplied: list[ContractRequest] = []
    for contract_request, contract in result.all():
        history = contract.status_history or []
        if not any(_history_records_approval(entry, contract_request) for entry in history):
            unapplied.append(contract_request)
    return unapplied
