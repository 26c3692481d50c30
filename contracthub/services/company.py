"""The deployment's single company record and its contract notification settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from contracthub.exceptions import ConflictError, NotFoundError
from contracthub.models.company import Company
from contracthub.models.enums import AuditAction, AuditEntityType
from contracthub.schemas.company import (
    FALLBACK_NOTIFICATION_SETTINGS,
    CompanyResponse,
    CompanySettings,
    ContractNotificationSettings,
)
from contracthub.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contracthub.schemas.auth import AuthContext
    from contracthub.schemas.company import CompanySettingsUpdate, CreateCompanyPayload, UpdateCompanyPayload


def load_company_settings(company: Company) -> CompanySettings:
    """Parse the stored settings JSON, filling in defaults for missing keys."""
    return CompanySettings.model_validate(company.settings_json or {})


def _build_company_response(company: Company) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        name=company.name,
        address=company.address,
        phone=company.phone,
        owner_id=company.owner_id,
        settings=load_company_settings(company),
        created_at=company.created_at,
    )


async def get_company_record(session: AsyncSession) -> Company | None:
    """Return the deployment's company, or None before one has been created."""
    result = await session.execute(select(Company).order_by(col(Company.created_at)).limit(1))
    return result.scalar_one_or_none()


async def _get_company_or_404(session: AsyncSession) -> Company:
    company = await get_company_record(session)
    if company is None:
        raise NotFoundError("Company not found")
    return company


async def get_notification_settings(session: AsyncSession) -> ContractNotificationSettings:
    """Read the notification thresholds fresh from the database.

    Falls back to 30 expiring days and no grace period when no company exists.
    """
    company = await get_company_record(session)
    if company is None:
        return FALLBACK_NOTIFICATION_SETTINGS
    return load_company_settings(company).contract_notifications


async def get_company(session: AsyncSession) -> CompanyResponse:
    return _build_company_response(await _get_company_or_404(session))


async def create_company(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateCompanyPayload,
) -> CompanyResponse:
    """Create the company. Only one company may exist per deployment."""
    if await get_company_record(session) is not None:
        raise ConflictError("A company already exists for this deployment")

    settings = payload.settings or CompanySettings()
    company = Company(
        name=payload.name,
        address=payload.address,
        phone=payload.phone,
        owner_id=auth.user_id,
        settings_json=settings.model_dump(mode="json"),
    )
    session.add(company)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A company with this name already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COMPANY,
        entity_id=company.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(company),
    )

    await session.commit()
    await session.refresh(company)
    return _build_company_response(company)


async def update_company(
    session: AsyncSession,
    auth: AuthContext,
    payload: UpdateCompanyPayload,
) -> CompanyResponse:
    """Update name, address or phone."""
    company = await _get_company_or_404(session)
    before_dict = model_to_audit_dict(company)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(company, field, value)

    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COMPANY,
        entity_id=company.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(company),
    )

    await session.commit()
    await session.refresh(company)
    return _build_company_response(company)


async def update_company_settings(session: AsyncSession, payload: CompanySettingsUpdate) -> CompanyResponse:
    """Merge a partial settings update into the stored settings.

    No history is kept for settings; the next reconciliation run picks them up.
    """
    company = await _get_company_or_404(session)

    current = load_company_settings(company).model_dump(mode="json")
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    notification_changes = changes.pop("contract_notifications", {})
    current.update(changes)
    current["contract_notifications"].update(notification_changes)

    # Reassign so the JSON column is marked dirty.
    company.settings_json = CompanySettings.model_validate(current).model_dump(mode="json")

    await session.commit()
    await session.refresh(company)
    return _build_company_response(company)
