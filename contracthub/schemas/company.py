# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from contracthub.models.enums import ReminderFrequency

# ---------------------------------------------------------------------------
# Settings sub-schemas
# ---------------------------------------------------------------------------


class ContractNotificationSettings(BaseModel):
    """Thresholds feeding the status calculator and the dashboard notification flags."""

    enabled: bool = True
    expiring_contract_days: int = Field(default=30, ge=0)
    expired_contract_grace_days: int = Field(default=7, ge=0)
    reminder_frequency: ReminderFrequency = ReminderFrequency.WEEKLY
    email_notifications: bool = True
    dashboard_notifications: bool = True


class CompanySettings(BaseModel):
    """Company-wide settings stored in Company.settings_json."""

    expiring_soon_days: int = Field(default=30, ge=0)
    auto_renewal: bool = True
    termination_notice_days: int = Field(default=60, ge=0)
    contract_notifications: ContractNotificationSettings = Field(default_factory=ContractNotificationSettings)


# Used when the deployment has no company record yet.
FALLBACK_NOTIFICATION_SETTINGS = ContractNotificationSettings(
    expiring_contract_days=30,
    expired_contract_grace_days=0,
)


class ContractNotificationSettingsUpdate(BaseModel):
    """Partial update of the notification settings; unset fields are kept."""

    enabled: bool | None = None
    expiring_contract_days: int | None = Field(default=None, ge=0)
    expired_contract_grace_days: int | None = Field(default=None, ge=0)
    reminder_frequency: ReminderFrequency | None = None
    email_notifications: bool | None = None
    dashboard_notifications: bool | None = None


class CompanySettingsUpdate(BaseModel):
    """Request body for PUT /company/settings."""

    expiring_soon_days: int | None = Field(default=None, ge=0)
    auto_renewal: bool | None = None
    termination_notice_days: int | None = Field(default=None, ge=0)
    contract_notifications: ContractNotificationSettingsUpdate | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateCompanyPayload(BaseModel):
    """Request body for creating the company."""

    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)
    phone: str | None = Field(default=None, max_length=50)
    settings: CompanySettings | None = None


class UpdateCompanyPayload(BaseModel):
    """Request body for updating company details."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=500)
    phone: str | None = Field(default=None, max_length=50)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CompanyResponse(BaseModel):
    id: uuid.UUID
    name: str
    address: str
    phone: str | None
    owner_id: uuid.UUID
    settings: CompanySettings
    created_at: datetime
