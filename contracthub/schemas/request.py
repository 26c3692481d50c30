# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from contracthub.models.enums import ContractStatus, RequestAction, RequestStatus, RequestType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for POST /contracts/requests."""

    contract_id: uuid.UUID
    type: RequestType
    reason: str | None = Field(default=None, max_length=2000)
    requested_status: ContractStatus | None = None

    @model_validator(mode="after")
    def _validate_requested_status(self) -> Self:
        if self.type == RequestType.STATUS_CHANGE and self.requested_status is None:
            msg = "requested_status is required for status_change requests"
            raise ValueError(msg)
        return self


class ProcessRequestPayload(BaseModel):
    """Request body for POST /admin/requests (approve or reject)."""

    request_id: uuid.UUID
    action: RequestAction
    admin_notes: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single contract request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    contract_id: uuid.UUID
    type: RequestType
    current_status: str
    requested_status: str | None
    reason: str | None
    status: RequestStatus
    admin_notes: str | None
    processed_by: uuid.UUID | None
    processed_at: datetime | None
    created_at: datetime


class RequestListResponse(BaseModel):
    items: list[RequestResponse]
    total: int
