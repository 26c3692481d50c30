# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from contracthub.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from contracthub.models.contract import Contract
from contracthub.models.enums import AuditAction, AuditEntityType, UserRole
from contracthub.models.user import User
from contracthub.schemas.user import UserListResponse, UserProfileResponse, UserResponse
from contracthub.services.audit import model_to_audit_dict, write_audit_log
from contracthub.services.auth import hash_password, verify_password
from contracthub.services.contract import build_contract_responses

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contracthub.schemas.auth import AuthContext
    from contracthub.schemas.user import ChangePasswordPayload, CreateUserPayload, UpdateUserPayload


def _build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=UserRole(user.role),
        phone=user.phone,
        address=user.address,
        created_at=user.created_at,
    )


async def get_user_record(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await session.execute(select(User).where(col(User.id) == user_id))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> UserResponse:
    user = await get_user_record(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _build_user_response(user)


async def create_user(session: AsyncSession, auth: AuthContext, payload: CreateUserPayload) -> UserResponse:
    """Create a user with a bcrypt-hashed password. Emails are unique, case-insensitive."""
    email = payload.email.strip().lower()
    existing = await session.execute(select(User).where(col(User.email) == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("A user with this email already exists")

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        phone=payload.phone,
        address=payload.address,
    )
    session.add(user)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A user with this email already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(user, exclude={"password_hash"}),
    )

    await session.commit()
    await session.refresh(user)
    return _build_user_response(user)


async def list_users(session: AsyncSession, offset: int = 0, limit: int = 50) -> UserListResponse:
    """List users ordered by name."""
    count_result = await session.execute(select(func.count()).select_from(User))
    total = count_result.scalar_one()

    result = await session.execute(select(User).order_by(col(User.name)).offset(offset).limit(limit))
    return UserListResponse(
        items=[_build_user_response(u) for u in result.scalars().all()],
        total=total,
    )


def _require_self_or_admin(auth: AuthContext, user_id: uuid.UUID) -> None:
    if not auth.is_admin and auth.user_id != user_id:
        raise ForbiddenError("You can only access your own account")


async def _get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user_record(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_user_profile(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserProfileResponse:
    """A user and their contracts, newest first. Users may only read their own profile."""
    _require_self_or_admin(auth, user_id)
    user = await _get_user_or_404(session, user_id)

    result = await session.execute(
        select(Contract).where(col(Contract.employee_id) == user_id).order_by(col(Contract.start_date).desc())
    )
    contracts = await build_contract_responses(session, result.scalars().all())
    return UserProfileResponse(user=_build_user_response(user), contracts=contracts)


async def update_user(
    session: AsyncSession, auth: AuthContext, user_id: uuid.UUID, payload: UpdateUserPayload
) -> UserResponse:
    _require_self_or_admin(auth, user_id)
    user = await _get_user_or_404(session, user_id)
    before = model_to_audit_dict(user, exclude={"password_hash"})

    updates = payload.model_dump(exclude_unset=True)
    # name and email cannot be cleared; phone and address can.
    updates = {k: v for k, v in updates.items() if v is not None or k in {"phone", "address"}}
    if "email" in updates:
        email = updates["email"].strip().lower()
        if email != user.email:
            existing = await session.execute(select(User).where(col(User.email) == email))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError("A user with this email already exists")
        updates["email"] = email

    for field, value in updates.items():
        setattr(user, field, value)
    session.add(user)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A user with this email already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(user, exclude={"password_hash"}),
    )

    await session.commit()
    await session.refresh(user)
    return _build_user_response(user)


async def change_password(
    session: AsyncSession, auth: AuthContext, user_id: uuid.UUID, payload: ChangePasswordPayload
) -> None:
    """Set a new password.

    Changing your own password requires the current one. Admins may reset another
    user's password without it. The hash is never written to the audit log.
    """
    _require_self_or_admin(auth, user_id)
    user = await _get_user_or_404(session, user_id)

    if auth.user_id == user_id:
        if not payload.current_password:
            raise ValidationFailedError("Current password is required")
        if not verify_password(payload.current_password, user.password_hash):
            raise ValidationFailedError("Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    session.add(user)
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.UPDATE,
        after_json={"password_changed": True},
    )
    await session.commit()
