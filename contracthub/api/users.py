# ruff: noqa: B008
"""Session endpoints, user profiles and admin user management."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from contracthub.api.deps import AdminDep, AuthDep, get_session_token
from contracthub.config import get_settings
from contracthub.db import SessionDep
from contracthub.exceptions import UnauthorizedError
from contracthub.schemas.auth import LoginPayload, LoginResponse, TokenCleanupResponse, TokenStatusResponse
from contracthub.schemas.user import (
    ChangePasswordPayload,
    CreateUserPayload,
    UpdateUserPayload,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
)
from contracthub.services import auth as auth_service
from contracthub.services import user as user_service

users_router = APIRouter(prefix="/users", tags=["users"])


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.auth_token_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


@users_router.post("/login", response_model=LoginResponse)
async def login(payload: LoginPayload, response: Response, session: SessionDep) -> LoginResponse:
    """Verify credentials and set the session cookie."""
    auth_token, auth = await auth_service.login(session, payload.email, payload.password)
    _set_session_cookie(response, auth_token.token)
    return LoginResponse(user=auth, expires_at=auth_token.expires_at)


@users_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    response: Response,
    session: SessionDep,
    auth: AuthDep,
    token: str | None = Depends(get_session_token),
) -> None:
    """Delete the session token and clear the cookie."""
    if token:
        await auth_service.logout(session, token)
    response.delete_cookie(get_settings().auth_cookie_name)


@users_router.get("/me", response_model=UserResponse)
async def me(session: SessionDep, auth: AuthDep) -> UserResponse:
    """Return the signed-in user."""
    return await user_service.get_user(session, auth.user_id)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    auth: AdminDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> UserListResponse:
    """List all users (admin only)."""
    return await user_service.list_users(session, offset, limit)


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: CreateUserPayload, session: SessionDep, auth: AdminDep) -> UserResponse:
    """Create a user (admin only)."""
    return await user_service.create_user(session, auth, payload)


@users_router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(user_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> UserProfileResponse:
    """A user and their contracts (self or admin)."""
    return await user_service.get_user_profile(session, auth, user_id)


@users_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID, payload: UpdateUserPayload, session: SessionDep, auth: AuthDep
) -> UserResponse:
    return await user_service.update_user(session, auth, user_id, payload)


@users_router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    user_id: uuid.UUID, payload: ChangePasswordPayload, session: SessionDep, auth: AuthDep
) -> None:
    """Change a password. Your own needs the current password; admins may reset anyone's."""
    await user_service.change_password(session, auth, user_id, payload)


auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/cleanup", response_model=TokenCleanupResponse)
async def cleanup_tokens(session: SessionDep, auth: AdminDep) -> TokenCleanupResponse:
    """Delete expired session tokens (admin only)."""
    deleted = await auth_service.cleanup_expired_tokens(session)
    return TokenCleanupResponse(deleted=deleted)


@auth_router.post("/refresh", response_model=LoginResponse)
async def refresh(
    response: Response,
    session: SessionDep,
    token: str | None = Depends(get_session_token),
) -> LoginResponse:
    """Extend the current session and re-issue the cookie."""
    if not token:
        raise UnauthorizedError("No session token")
    auth_token, auth = await auth_service.refresh_token(session, token)
    _set_session_cookie(response, auth_token.token)
    return LoginResponse(user=auth, expires_at=auth_token.expires_at)


@auth_router.get("/status", response_model=TokenStatusResponse)
async def token_status(session: SessionDep, auth: AdminDep) -> TokenStatusResponse:
    """Counts of live and expired session tokens (admin only)."""
    return await auth_service.token_status(session)
