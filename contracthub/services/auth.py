"""Session-token authentication: password hashing, login/logout, cookie token lookup."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

import bcrypt
from sqlalchemy import delete, func, select
from sqlmodel import col

from contracthub.config import get_settings
from contracthub.exceptions import UnauthorizedError
from contracthub.models.base import now_utc
from contracthub.models.enums import UserRole
from contracthub.models.user import AuthToken, User
from contracthub.schemas.auth import AuthContext, TokenStatusResponse

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Return a bcrypt hash suitable for User.password_hash."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password.
        return False


def _build_auth_context(user: User) -> AuthContext:
    return AuthContext(user_id=user.id, role=UserRole(user.role), name=user.name, email=user.email)


async def issue_token(session: AsyncSession, user: User, now: datetime | None = None) -> AuthToken:
    """Create a new session token for the user within the caller's transaction."""
    now = now or now_utc()
    ttl = timedelta(hours=get_settings().auth_token_ttl_hours)
    auth_token = AuthToken(user_id=user.id, token=secrets.token_urlsafe(32), expires_at=now + ttl)
    session.add(auth_token)
    await session.flush()
    return auth_token


async def login(session: AsyncSession, email: str, password: str) -> tuple[AuthToken, AuthContext]:
    """Verify credentials and issue a session token. Raises 401 on bad credentials."""
    result = await session.execute(select(User).where(col(User.email) == email.strip().lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    auth_token = await issue_token(session, user)
    await session.commit()
    logger.info("User %s logged in", user.id)
    return auth_token, _build_auth_context(user)


async def logout(session: AsyncSession, token: str) -> None:
    """Delete the session token. Unknown tokens are ignored."""
    await session.execute(delete(AuthToken).where(col(AuthToken.token) == token))
    await session.commit()


async def resolve_token(session: AsyncSession, token: str, now: datetime | None = None) -> AuthContext | None:
    """Look up a non-expired token and return the identity it belongs to."""
    now = now or now_utc()
    result = await session.execute(
        select(User)
        .join(AuthToken, col(AuthToken.user_id) == col(User.id))
        .where(
            col(AuthToken.token) == token,
            col(AuthToken.expires_at) > now,
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    return _build_auth_context(user)


async def cleanup_expired_tokens(session: AsyncSession, now: datetime | None = None) -> int:
    """Delete every expired token and return how many were removed."""
    now = now or now_utc()
    result = await session.execute(
        delete(AuthToken)
        .where(col(AuthToken.expires_at) <= now)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    deleted = result.rowcount or 0
    if deleted:
        logger.info("Removed %d expired auth tokens", deleted)
    return deleted


async def refresh_token(
    session: AsyncSession, token: str, now: datetime | None = None
) -> tuple[AuthToken, AuthContext]:
    """Push a live token's expiry to a full TTL from now. Raises 401 if it is unknown or expired."""
    now = now or now_utc()
    result = await session.execute(
        select(AuthToken, User)
        .join(User, col(AuthToken.user_id) == col(User.id))
        .where(
            col(AuthToken.token) == token,
            col(AuthToken.expires_at) > now,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise UnauthorizedError("Session expired")

    auth_token, user = row
    auth_token.expires_at = now + timedelta(hours=get_settings().auth_token_ttl_hours)
    session.add(auth_token)
    await session.commit()
    return auth_token, _build_auth_context(user)


async def token_status(session: AsyncSession, now: datetime | None = None) -> TokenStatusResponse:
    """Count live and expired session tokens."""
    now = now or now_utc()
    total = (await session.execute(select(func.count()).select_from(AuthToken))).scalar_one()
    active = (
        await session.execute(select(func.count()).select_from(AuthToken).where(col(AuthToken.expires_at) > now))
    ).scalar_one()
    return TokenStatusResponse(active_tokens=active, expired_tokens=total - active, total_tokens=total)
