# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from contracthub.models.base import TimestampMixin, UUIDBase
from contracthub.models.enums import RequestStatus


class ContractRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's request to renew, terminate or change the status of a contract."""

    __tablename__ = "contract_request"
    __table_args__ = (
        sa.Index("ix_contract_request_status", "status"),
        sa.Index(
            "uq_contract_request_one_pending",
            "contract_id",
            unique=True,
            postgresql_where=sa.text("status = 'pending'"),
            sqlite_where=sa.text("status = 'pending'"),
        ),
    )

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    contract_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("contract.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    type: str = Field(max_length=50)
    current_status: str = Field(max_length=50)
    requested_status: str | None = Field(default=None, max_length=50)
    reason: str | None = None
    status: str = Field(default=RequestStatus.PENDING, max_length=20, sa_column_kwargs={"server_default": "pending"})
    admin_notes: str | None = None
    processed_by: uuid.UUID | None = None
    processed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
