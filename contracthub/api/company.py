from __future__ import annotations

from fastapi import APIRouter, status

from contracthub.api.deps import AdminDep, AuthDep
from contracthub.db import SessionDep
from contracthub.schemas.company import (
    CompanyResponse,
    CompanySettingsUpdate,
    CreateCompanyPayload,
    UpdateCompanyPayload,
)
from contracthub.services import company as company_service

company_router = APIRouter(prefix="/company", tags=["company"])


@company_router.get("", response_model=CompanyResponse)
async def get_company(session: SessionDep, auth: AuthDep) -> CompanyResponse:
    """Return the deployment's company and its settings."""
    return await company_service.get_company(session)


@company_router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(payload: CreateCompanyPayload, session: SessionDep, auth: AdminDep) -> CompanyResponse:
    """Create the company (admin only, once per deployment)."""
    return await company_service.create_company(session, auth, payload)


@company_router.put("", response_model=CompanyResponse)
async def update_company(payload: UpdateCompanyPayload, session: SessionDep, auth: AdminDep) -> CompanyResponse:
    """Update company details (admin only)."""
    return await company_service.update_company(session, auth, payload)


@company_router.put("/settings", response_model=CompanyResponse)
async def update_company_settings(
    payload: CompanySettingsUpdate,
    session: SessionDep,
    auth: AdminDep,
) -> CompanyResponse:
    """Merge-update the company settings, including contract notification thresholds (admin only)."""
    return await company_service.update_company_settings(session, payload)
