from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from contracthub.models.enums import ContractStatus, ContractType

if TYPE_CHECKING:
    from httpx import AsyncClient


async def test_analytics_counts(async_client: AsyncClient, admin, employee, contract_factory) -> None:
    now = datetime.now(UTC)
    started = now - timedelta(days=300)
    await contract_factory(employee.id, start_date=started, end_date=now + timedelta(days=10))
    await contract_factory(
        employee.id,
        start_date=started,
        end_date=now + timedelta(days=200),
        contract_type=ContractType.CDI,
    )
    await contract_factory(
        employee.id, start_date=started, end_date=now - timedelta(days=30), status=ContractStatus.EXPIRED
    )
    terminated = await contract_factory(
        employee.id, start_date=started, end_date=now + timedelta(days=5), status=ContractStatus.TERMINATED
    )
    await async_client.post(
        "/contracts/requests",
        json={"contract_id": str(terminated.id), "type": "renewal"},
        headers=employee.headers,
    )

    resp = await async_client.get("/analytics", headers=admin.headers)

    assert resp.status_code == 200
    data = resp.json()
    contracts = data["contracts"]
    assert contracts["total"] == 4
    assert contracts["active"] == 2
    assert contracts["expiring"] == 1
    assert contracts["expired"] == 1
    assert contracts["terminated"] == 1
    assert contracts["by_type"] == {"CDD": 3, "CDI": 1}
    assert data["requests"] == {"total": 1, "pending": 1, "approved": 0, "rejected": 0}
    assert data["users"] == 2


async def test_analytics_requires_admin(async_client: AsyncClient, employee) -> None:
    resp = await async_client.get("/analytics", headers=employee.headers)
    assert resp.status_code == 403


async def test_activity_feed_lists_audit_entries(async_client: AsyncClient, admin) -> None:
    await async_client.post("/company", json={"name": "Acme", "address": "1 Main St"}, headers=admin.headers)
    await async_client.put("/company", json={"phone": "+1 555 0199"}, headers=admin.headers)

    resp = await async_client.get("/analytics/activity", headers=admin.headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert {e["action"] for e in data["items"]} == {"CREATE", "UPDATE"}
    assert all(e["entity_type"] == "COMPANY" for e in data["items"])

    filtered = await async_client.get("/analytics/activity", params={"action": "UPDATE"}, headers=admin.headers)
    assert filtered.json()["total"] == 1
