from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from contracthub.config import get_settings
from contracthub.db import get_session
from contracthub.main import app
from contracthub.models import SQLModel
from contracthub.models.base import now_utc
from contracthub.models.contract import Contract
from contracthub.models.enums import ContractStatus, ContractType, UserRole
from contracthub.models.user import User
from contracthub.services.auth import hash_password, issue_token

if TYPE_CHECKING:
    import uuid
    from collections.abc import AsyncIterator, Awaitable, Callable
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
TEST_PASSWORD = "correct-horse-battery"


@dataclass
class SignedInUser:
    """A user row plus the cookie header that authenticates as it."""

    user: User
    token: str

    @property
    def id(self) -> uuid.UUID:
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Cookie": f"{get_settings().auth_cookie_name}={self.token}"}


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an engine with a fresh schema for each test.

    Defaults to in-memory SQLite; set TEST_DATABASE_URL to run against Postgres.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        _engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        _engine = create_async_engine(TEST_DATABASE_URL)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def make_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    role: UserRole = UserRole.USER,
    password: str = TEST_PASSWORD,
) -> SignedInUser:
    """Insert a user and issue a session token for it."""
    user = User(name=name, email=email, password_hash=hash_password(password), role=role.value)
    session.add(user)
    await session.flush()
    auth_token = await issue_token(session, user)
    await session.commit()
    return SignedInUser(user=user, token=auth_token.token)


@pytest.fixture
async def admin(db_session: AsyncSession) -> SignedInUser:
    return await make_user(db_session, name="Ada Admin", email="ada@example.com", role=UserRole.ADMIN)


@pytest.fixture
async def employee(db_session: AsyncSession) -> SignedInUser:
    return await make_user(db_session, name="Eve Employee", email="eve@example.com")


@pytest.fixture
async def other_employee(db_session: AsyncSession) -> SignedInUser:
    return await make_user(db_session, name="Oscar Other", email="oscar@example.com")


async def make_contract(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    start_date: datetime,
    end_date: datetime | None,
    status: ContractStatus = ContractStatus.ACTIVE,
    contract_type: ContractType = ContractType.CDD,
) -> Contract:
    """Insert a contract with a given cached status, bypassing the create endpoint."""
    contract = Contract(
        employee_id=employee_id,
        type=contract_type.value,
        start_date=start_date,
        end_date=end_date,
        status=status.value,
        last_status_update=now_utc(),
    )
    session.add(contract)
    await session.commit()
    return contract


@pytest.fixture
def contract_factory(db_session: AsyncSession) -> Callable[..., Awaitable[Contract]]:
    async def _make(employee_id: uuid.UUID, **kwargs: object) -> Contract:
        return await make_contract(db_session, employee_id, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[SignedInUser]]:
    async def _make(**kwargs: object) -> SignedInUser:
        return await make_user(db_session, **kwargs)  # type: ignore[arg-type]

    return _make
