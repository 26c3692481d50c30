"""Seed script for development data.

Run with:  python -m contracthub.seed

The first admin account is written straight to the database (user creation
over the API needs an admin session). Everything else goes through the
running API so the status engine and audit log see realistic traffic.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import UTC, datetime, timedelta

import httpx
from sqlalchemy import select
from sqlmodel import col

from contracthub.config import get_settings
from contracthub.db import dispose_engine, get_session_factory
from contracthub.models.enums import UserRole
from contracthub.models.user import User
from contracthub.services.auth import hash_password

BASE_URL = "http://localhost:8000"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"

EMPLOYEES = [
    {"name": "Alice Johnson", "email": "alice.johnson@example.com", "password": "alice-password"},
    {"name": "Bob Smith", "email": "bob.smith@example.com", "password": "bob-password"},
    {"name": "Carol Williams", "email": "carol.williams@example.com", "password": "carol-password"},
    {"name": "Dave Brown", "email": "dave.brown@example.com", "password": "dave-password"},
]

COMPANY = {
    "name": "Example Corp",
    "address": "1 Example Street",
    "phone": "+1 555 0100",
}


def _iso(days_from_now: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days_from_now)).isoformat()


async def ensure_admin() -> None:
    """Create the bootstrap admin directly in the database if it is missing."""
    print("\n--- Bootstrapping admin ---")
    session_factory = get_session_factory()
    async with session_factory() as session:
        result = await session.execute(select(User).where(col(User.email) == ADMIN_EMAIL))
        if result.scalar_one_or_none() is not None:
            print(f"  [SKIP] {ADMIN_EMAIL} (already exists)")
            return
        session.add(
            User(
                name="Admin",
                email=ADMIN_EMAIL,
                password_hash=hash_password(ADMIN_PASSWORD),
                role=UserRole.ADMIN.value,
            )
        )
        await session.commit()
        print(f"  [OK] {ADMIN_EMAIL}")
    await dispose_engine()


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict, label: str) -> dict | None:
    """POST with 409-conflict tolerance for idempotency."""
    resp = await client.post(url, json=json)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def login(client: httpx.AsyncClient, email: str, password: str) -> None:
    """Sign in; the client keeps the session cookie."""
    resp = await client.post(f"{BASE_URL}/users/login", json={"email": email, "password": password})
    if resp.status_code != 200:
        print(f"ERROR: login as {email} failed: {resp.status_code} {resp.text[:200]}")
        sys.exit(1)


async def seed_company(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding company ---")
    await _safe_post(client, f"{BASE_URL}/company", COMPANY, COMPANY["name"])


async def seed_employees(client: httpx.AsyncClient) -> dict[str, str]:
    """Create employees and return an email->id mapping."""
    print("\n--- Seeding employees ---")
    for emp in EMPLOYEES:
        await _safe_post(client, f"{BASE_URL}/users", {**emp, "role": "USER"}, emp["name"])

    resp = await client.get(f"{BASE_URL}/users", params={"limit": 100})
    return {u["email"]: u["id"] for u in resp.json()["items"]}


async def seed_contracts(client: httpx.AsyncClient, user_ids: dict[str, str]) -> dict[str, str]:
    """One contract per employee, spread over the status lifecycle. Returns email->contract id."""
    print("\n--- Seeding contracts ---")
    existing = await client.get(f"{BASE_URL}/contracts", params={"limit": 100})
    owned = {c["employee_id"] for c in existing.json()["items"]}

    plans = [
        ("alice.johnson@example.com", "CDI", -400, None, "open-ended"),
        ("bob.smith@example.com", "CDD", -300, 12, "expiring soon"),
        ("carol.williams@example.com", "Internship", -180, -20, "expired"),
        ("dave.brown@example.com", "CDD", 14, 380, "not started"),
    ]
    contract_ids: dict[str, str] = {}
    for email, contract_type, start_offset, end_offset, label in plans:
        employee_id = user_ids.get(email)
        if employee_id is None:
            continue
        if employee_id in owned:
            print(f"  [SKIP] {email} ({label}, already has a contract)")
            continue
        body = {
            "employee_id": employee_id,
            "type": contract_type,
            "start_date": _iso(start_offset),
            "end_date": _iso(end_offset) if end_offset is not None else None,
        }
        created = await _safe_post(client, f"{BASE_URL}/contracts", body, f"{email} ({label})")
        if created is not None:
            contract_ids[email] = created["id"]
    return contract_ids


async def seed_requests(contract_ids: dict[str, str]) -> None:
    """Bob asks for a renewal of his expiring contract."""
    print("\n--- Seeding requests ---")
    contract_id = contract_ids.get("bob.smith@example.com")
    if contract_id is None:
        print("  [SKIP] no new contract for bob.smith@example.com")
        return
    async with httpx.AsyncClient(timeout=30.0) as client:
        await login(client, "bob.smith@example.com", "bob-password")
        await _safe_post(
            client,
            f"{BASE_URL}/contracts/requests",
            {"contract_id": contract_id, "type": "renewal", "reason": "Project extended by a year"},
            "Bob: renewal request",
        )


async def run_reconciliation(client: httpx.AsyncClient) -> None:
    print("\n--- Reconciling contract statuses ---")
    resp = await client.post(f"{BASE_URL}/contracts/status")
    if resp.status_code != 200:
        print(f"  [ERROR] reconciliation: {resp.status_code} {resp.text[:200]}")
        return
    data = resp.json()
    print(f"  [OK] processed={data['processed']} updated={data['updated_count']} errors={data['errors']}")


async def main() -> None:
    settings = get_settings()
    print("=" * 60)
    print(f"  {settings.app_name} Development Seed Script")
    print("=" * 60)

    await ensure_admin()

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running (uvicorn contracthub.main:app)")
            sys.exit(1)

        await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        await seed_company(client)
        user_ids = await seed_employees(client)
        contract_ids = await seed_contracts(client, user_ids)
        await seed_requests(contract_ids)
        await run_reconciliation(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
