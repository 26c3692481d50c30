# ruff: noqa: B008
from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, Header, Request

from contracthub.config import get_settings
from contracthub.db import SessionDep
from contracthub.exceptions import ForbiddenError, UnauthorizedError
from contracthub.schemas.auth import AuthContext
from contracthub.services.auth import resolve_token


def get_session_token(request: Request) -> str | None:
    """Raw session token from the auth cookie, if any."""
    return request.cookies.get(get_settings().auth_cookie_name)


async def get_auth_context(
    session: SessionDep,
    token: str | None = Depends(get_session_token),
) -> AuthContext:
    """Resolve the session cookie to the signed-in user, or fail with 401."""
    if not token:
        raise UnauthorizedError("Authentication required")
    auth = await resolve_token(session, token)
    if auth is None:
        raise UnauthorizedError("Session expired or invalid")
    return auth


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise ForbiddenError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def verify_cron_token(
    authorization: str | None = Header(default=None),
) -> None:
    """Check the scheduler's bearer token when CRON_SECRET_TOKEN is configured."""
    expected = get_settings().cron_secret_token
    if not expected:
        return
    if authorization is None or not secrets.compare_digest(authorization, f"Bearer {expected}"):
        raise UnauthorizedError("Unauthorized")
