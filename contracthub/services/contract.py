# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from contracthub.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from contracthub.models.base import ensure_utc, now_utc
from contracthub.models.company import Company
from contracthub.models.contract import Contract
from contracthub.models.enums import AuditAction, AuditEntityType, ContractStatus, ContractType
from contracthub.models.user import User
from contracthub.schemas.contract import (
    ContractDocument,
    ContractListResponse,
    ContractResponse,
    EmployeeSummary,
    StatusHistoryEntry,
)
from contracthub.services.audit import model_to_audit_dict, write_audit_log
from contracthub.services.company import get_notification_settings
from contracthub.services.status import calculate_status

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from contracthub.schemas.auth import AuthContext
    from contracthub.schemas.contract import CreateContractPayload, UpdateContractPayload


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------


def build_contract_response(contract: Contract, employee: User | None = None) -> ContractResponse:
    """Map a contract model to its response schema.

    ``employee`` is only set when the caller resolved the owner for display.
    """
    return ContractResponse(
        id=contract.id,
        employee_id=contract.employee_id,
        employee=EmployeeSummary(id=employee.id, name=employee.name, email=employee.email) if employee else None,
        company_id=contract.company_id,
        type=ContractType(contract.type),
        start_date=contract.start_date,
        end_date=contract.end_date,
        status=ContractStatus(contract.status),
        status_history=[StatusHistoryEntry.model_validate(e) for e in contract.status_history or []],
        last_status_update=contract.last_status_update,
        documents=[ContractDocument.model_validate(d) for d in contract.documents or []],
        created_at=contract.created_at,
    )


async def build_contract_responses(session: AsyncSession, contracts: Sequence[Contract]) -> list[ContractResponse]:
    """Map contracts to responses with their owners expanded, using one user query."""
    employee_ids = {c.employee_id for c in contracts}
    employees: dict[uuid.UUID, User] = {}
    if employee_ids:
        result = await session.execute(select(User).where(col(User.id).in_(employee_ids)))
        employees = {u.id: u for u in result.scalars().all()}
    return [build_contract_response(c, employees.get(c.employee_id)) for c in contracts]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def get_contract_or_404(session: AsyncSession, contract_id: uuid.UUID) -> Contract:
    """Fetch a contract by ID. Raises 404 if not found."""
    result = await session.execute(select(Contract).where(col(Contract.id) == contract_id))
    contract = result.scalar_one_or_none()
    if contract is None:
        raise NotFoundError("Contract not found")
    return contract


async def _verify_references(
    session: AsyncSession,
    employee_id: uuid.UUID | None,
    company_id: uuid.UUID | None,
) -> User | None:
    employee = None
    if employee_id is not None:
        employee = (await session.execute(select(User).where(col(User.id) == employee_id))).scalar_one_or_none()
        if employee is None:
            raise ValidationFailedError("Employee does not exist")
    if company_id is not None:
        company = (await session.execute(select(Company).where(col(Company.id) == company_id))).scalar_one_or_none()
        if company is None:
            raise ValidationFailedError("Company does not exist")
    return employee


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_contract(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateContractPayload,
) -> ContractResponse:
    """Create a contract with its initial status computed from its dates."""
    employee = await _verify_references(session, payload.employee_id, payload.company_id)

    now = now_utc()
    settings = await get_notification_settings(session)
    initial_status = calculate_status(payload.start_date, payload.end_date, settings, now)

    contract = Contract(
        employee_id=payload.employee_id,
        company_id=payload.company_id,
        type=payload.type.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=initial_status.value,
        documents=[
            {
                "file_name": d.file_name,
                "file_url": d.file_url,
                "upload_date": (d.upload_date or now).isoformat(),
            }
            for d in payload.documents
        ],
    )
    contract.status_history = [
        {
            "status": initial_status.value,
            "previous_status": None,
            "updated_at": now.isoformat(),
            "reason": "Contract created",
            "updated_by": auth.name or str(auth.user_id),
        }
    ]
    contract.last_status_update = now
    session.add(contract)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.CONTRACT,
        entity_id=contract.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(contract),
    )

    await session.commit()
    await session.refresh(contract)
    return build_contract_response(contract, employee)


async def update_contract(
    session: AsyncSession,
    auth: AuthContext,
    contract_id: uuid.UUID,
    payload: UpdateContractPayload,
) -> ContractResponse:
    """Update dates, type or company. The cached status is refreshed by the next reconciliation."""
    contract = await get_contract_or_404(session, contract_id)
    await _verify_references(session, None, payload.company_id)
    new_start = payload.start_date or contract.start_date
    new_end = None if payload.clear_end_date else (payload.end_date or contract.end_date)
    if new_end is not None and ensure_utc(new_end) < ensure_utc(new_start):
        raise ValidationFailedError("end_date must be on or after start_date")

    before_dict = model_to_audit_dict(contract)
    changes = payload.model_dump(exclude_unset=True, exclude={"clear_end_date"})
    if "type" in changes and changes["type"] is not None:
        changes["type"] = changes["type"].value
    for field, value in changes.items():
        if value is not None:
            setattr(contract, field, value)
    if payload.clear_end_date:
        contract.end_date = None

    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.CONTRACT,
        entity_id=contract.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(contract),
    )

    await session.commit()
    await session.refresh(contract)
    return build_contract_response(contract)


async def get_contract(session: AsyncSession, auth: AuthContext, contract_id: uuid.UUID) -> ContractResponse:
    """Get one contract. Employees may only read their own contracts."""
    contract = await get_contract_or_404(session, contract_id)
    if not auth.is_admin and contract.employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this contract")
    responses = await build_contract_responses(session, [contract])
    return responses[0]


async def list_contracts(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: str | None = None,
    employee_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ContractListResponse:
    """List contracts, newest first. Non-admins only ever see their own."""
    filters = []
    if not auth.is_admin:
        filters.append(col(Contract.employee_id) == auth.user_id)
    elif employee_id is not None:
        filters.append(col(Contract.employee_id) == employee_id)
    if status_filter is not None:
        filters.append(col(Contract.status) == status_filter)

    count_result = await session.execute(select(func.count()).select_from(Contract).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Contract).where(*filters).order_by(col(Contract.created_at).desc()).offset(offset).limit(limit)
    )
    contracts = list(result.scalars().all())
    return ContractListResponse(items=await build_contract_responses(session, contracts), total=total)

