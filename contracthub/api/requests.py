# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from contracthub.api.deps import AdminDep, AuthDep
from contracthub.db import SessionDep
from contracthub.models.enums import RequestStatus
from contracthub.schemas.request import (
    CreateRequestPayload,
    ProcessRequestPayload,
    RequestListResponse,
    RequestResponse,
)
from contracthub.services import request as request_service

# ---------------------------------------------------------------------------
# Employee side: /contracts/requests
# ---------------------------------------------------------------------------

requests_router = APIRouter(prefix="/contracts/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a renewal, termination or status change request on one of your contracts."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_my_requests(
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List the caller's own requests, newest first."""
    return await request_service.list_requests(session, employee_id=auth.user_id, offset=offset, limit=limit)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(request_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> RequestResponse:
    """Get a single request."""
    return await request_service.get_request(session, auth, request_id)


# ---------------------------------------------------------------------------
# Admin side: /admin/requests
# ---------------------------------------------------------------------------

admin_requests_router = APIRouter(prefix="/admin/requests", tags=["admin"])


@admin_requests_router.get("", response_model=RequestListResponse)
async def list_all_requests(
    session: SessionDep,
    auth: AdminDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List all requests with optional filters (admin only)."""
    return await request_service.list_requests(
        session,
        employee_id=employee_id,
        status_filter=status_filter.value if status_filter is not None else None,
        offset=offset,
        limit=limit,
    )


@admin_requests_router.post("", response_model=RequestResponse)
async def process_request(
    payload: ProcessRequestPayload,
    session: SessionDep,
    auth: AdminDep,
) -> RequestResponse:
    """Approve or reject a pending request (admin only)."""
    return await request_service.process_request(session, auth, payload)


@admin_requests_router.get("/unapplied", response_model=RequestListResponse)
async def list_unapplied_approvals(session: SessionDep, auth: AdminDep) -> RequestListResponse:
    """Approved requests whose contract shows no matching status change (admin only)."""
    unapplied = await request_service.find_unapplied_approvals(session)
    items = [request_service.build_request_response(r) for r in unapplied]
    return RequestListResponse(items=items, total=len(items))
