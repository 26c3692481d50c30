from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from contracthub.models.base import TimestampMixin, UUIDBase
from contracthub.models.enums import UserRole


class User(UUIDBase, TimestampMixin, table=True):
    """An employee or administrator who can sign in."""

    __tablename__ = "app_user"

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: str = Field(default=UserRole.USER, max_length=20, sa_column_kwargs={"server_default": "USER"})
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class AuthToken(UUIDBase, TimestampMixin, table=True):
    """Opaque session token handed out in the auth cookie."""

    __tablename__ = "auth_token"

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    token: str = Field(max_length=255, unique=True, index=True)
    expires_at: datetime = Field(sa_type=sa.DateTime(timezone=True), index=True)  # ty: ignore[invalid-argument-type]
