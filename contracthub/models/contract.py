# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from contracthub.models.base import TimestampMixin, UUIDBase
from contracthub.models.enums import ContractStatus


class Contract(UUIDBase, TimestampMixin, table=True):
    """An employment contract with its cached status and append-only status history."""

    __tablename__ = "contract"
    __table_args__ = (sa.Index("ix_contract_status_end_date", "status", "end_date"),)

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    company_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("company.id", ondelete="SET NULL"), nullable=True),
    )
    type: str = Field(max_length=50)
    start_date: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    end_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    status: str = Field(
        default=ContractStatus.ACTIVE, max_length=50, sa_column_kwargs={"server_default": "Active"}
    )
    status_history: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)
    last_status_update: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    documents: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)
