# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from contracthub.models.base import ensure_utc
from contracthub.models.enums import ContractStatus, ContractType


def _coerce_datetime(value: Any) -> Any:
    """Accept bare ISO dates (``2025-01-31``) and date objects as midnight UTC."""
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00+00:00"
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


# ---------------------------------------------------------------------------
# Nested schemas
# ---------------------------------------------------------------------------


class StatusHistoryEntry(BaseModel):
    """One appended entry of Contract.status_history."""

    status: str
    previous_status: str | None = None
    updated_at: datetime
    reason: str
    updated_by: str


class ContractDocument(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=2048)
    upload_date: datetime | None = None


class EmployeeSummary(BaseModel):
    """Expanded view of the contract owner, resolved for display only."""

    id: uuid.UUID
    name: str
    email: str


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateContractPayload(BaseModel):
    """Request body for creating a contract (admin only)."""

    employee_id: uuid.UUID
    company_id: uuid.UUID | None = None
    type: ContractType
    start_date: datetime
    end_date: datetime | None = None
    documents: list[ContractDocument] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _coerce_datetime(value)

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date is not None and self.end_date < self.start_date:
            msg = "end_date must be on or after start_date"
            raise ValueError(msg)
        return self


class UpdateContractPayload(BaseModel):
    """Partial update of a contract. Status is not editable here; it is derived or set by approvals."""

    company_id: uuid.UUID | None = None
    type: ContractType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    clear_end_date: bool = False

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _coerce_datetime(value)

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _validate_end_date(self) -> Self:
        if self.clear_end_date and self.end_date is not None:
            msg = "end_date and clear_end_date are mutually exclusive"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ContractResponse(BaseModel):
    """Response schema for a single contract."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee: EmployeeSummary | None = None
    company_id: uuid.UUID | None
    type: ContractType
    start_date: datetime
    end_date: datetime | None
    status: ContractStatus
    status_history: list[StatusHistoryEntry]
    last_status_update: datetime | None
    documents: list[ContractDocument]
    created_at: datetime


class ContractListResponse(BaseModel):
    items: list[ContractResponse]
    total: int
