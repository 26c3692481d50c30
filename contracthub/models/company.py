# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from contracthub.models.base import TimestampMixin, UUIDBase


class Company(UUIDBase, TimestampMixin, table=True):
    """The single company record of a deployment, holding contract notification settings."""

    __tablename__ = "company"

    name: str = Field(max_length=255, unique=True)
    address: str = Field(max_length=500)
    phone: str | None = Field(default=None, max_length=50)
    owner_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id"), nullable=False),
    )
    settings_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
