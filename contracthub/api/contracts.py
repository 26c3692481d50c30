# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from contracthub.api.deps import AdminDep, AuthDep
from contracthub.db import SessionDep
from contracthub.models.enums import ContractStatus
from contracthub.schemas.contract import (
    ContractListResponse,
    ContractResponse,
    CreateContractPayload,
    UpdateContractPayload,
)
from contracthub.services import contract as contract_service

contracts_router = APIRouter(prefix="/contracts", tags=["contracts"])


@contracts_router.get("", response_model=ContractListResponse)
async def list_contracts(
    session: SessionDep,
    auth: AuthDep,
    status_filter: ContractStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ContractListResponse:
    """List contracts: all of them for admins, the caller's own otherwise."""
    return await contract_service.list_contracts(
        session,
        auth,
        status_filter.value if status_filter is not None else None,
        employee_id,
        offset,
        limit,
    )


@contracts_router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    payload: CreateContractPayload,
    session: SessionDep,
    auth: AdminDep,
) -> ContractResponse:
    """Create a contract (admin only)."""
    return await contract_service.create_contract(session, auth, payload)


@contracts_router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(contract_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> ContractResponse:
    """Get a single contract with its status history."""
    return await contract_service.get_contract(session, auth, contract_id)


@contracts_router.patch("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    contract_id: uuid.UUID,
    payload: UpdateContractPayload,
    session: SessionDep,
    auth: AdminDep,
) -> ContractResponse:
    """Update a contract's type, dates or company (admin only)."""
    return await contract_service.update_contract(session, auth, contract_id, payload)
