# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from contracthub.models.enums import UserRole
from contracthub.schemas.contract import ContractResponse


class CreateUserPayload(BaseModel):
    """Request body for creating a user (admin only)."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.USER
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class UserResponse(BaseModel):
    """Public view of a user. The password hash never leaves the service."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    phone: str | None
    address: str | None
    created_at: datetime


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int


class UpdateUserPayload(BaseModel):
    """Profile update. Only the fields present are changed; role and password are not editable here."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class ChangePasswordPayload(BaseModel):
    # Required when changing your own password; admins resetting another user may omit it.
    current_password: str | None = Field(default=None, max_length=255)
    new_password: str = Field(min_length=8, max_length=72)


class UserProfileResponse(BaseModel):
    """A user together with the contracts they hold."""

    user: UserResponse
    contracts: list[ContractResponse]
