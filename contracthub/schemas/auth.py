# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from contracthub.models.enums import UserRole


class AuthContext(BaseModel):
    """Identity resolved from the session cookie."""

    user_id: uuid.UUID
    role: UserRole = UserRole.USER
    name: str
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class LoginPayload(BaseModel):
    """Request body for POST /users/login."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class TokenCleanupResponse(BaseModel):
    """Response from the expired-token cleanup endpoint."""

    deleted: int


class LoginResponse(BaseModel):
    """Identity of the signed-in user. The token itself travels in the cookie."""

    user: AuthContext
    expires_at: datetime


class TokenStatusResponse(BaseModel):
    active_tokens: int
    expired_tokens: int
    total_tokens: int
