"""Tests for the request workflow: create, approve, reject, double-processing and audit."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from contracthub.models.audit import AuditLog
from contracthub.models.contract import Contract
from contracthub.models.enums import ContractStatus, RequestStatus
from contracthub.models.request import ContractRequest
from contracthub.services.request import approval_reason, find_unapplied_approvals

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

REQUESTS_URL = "/contracts/requests"
ADMIN_REQUESTS_URL = "/admin/requests"


async def _contract_for(contract_factory, employee_id: uuid.UUID, **kwargs: object) -> Contract:
    now = datetime.now(UTC)
    defaults: dict[str, object] = {"start_date": now - timedelta(days=200), "end_date": now + timedelta(days=120)}
    defaults.update(kwargs)
    return await contract_factory(employee_id, **defaults)


async def _submit(client: AsyncClient, headers: dict[str, str], contract_id: uuid.UUID, **body: object) -> dict:
    payload: dict[str, object] = {"contract_id": str(contract_id), "type": "termination", **body}
    resp = await client.post(REQUESTS_URL, json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def test_create_request_snapshots_contract_status(
    async_client: AsyncClient, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id, status=ContractStatus.EXPIRING_SOON)

    data = await _submit(async_client, employee.headers, contract.id, type="renewal")

    assert data["status"] == RequestStatus.PENDING
    assert data["current_status"] == "Expiring Soon"
    assert data["employee_id"] == str(employee.id)
    assert data["reason"] == "renewal requested by employee"
    assert data["requested_status"] is None


async def test_create_request_on_someone_elses_contract_is_403(
    async_client: AsyncClient, employee, other_employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, other_employee.id)

    resp = await async_client.post(
        REQUESTS_URL,
        json={"contract_id": str(contract.id), "type": "termination"},
        headers=employee.headers,
    )

    assert resp.status_code == 403


async def test_create_request_unknown_contract_is_404(async_client: AsyncClient, employee) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={"contract_id": str(uuid.uuid4()), "type": "termination"},
        headers=employee.headers,
    )
    assert resp.status_code == 404


async def test_second_pending_request_is_409(async_client: AsyncClient, employee, contract_factory) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    await _submit(async_client, employee.headers, contract.id)

    resp = await async_client.post(
        REQUESTS_URL,
        json={"contract_id": str(contract.id), "type": "renewal"},
        headers=employee.headers,
    )

    assert resp.status_code == 409


async def test_status_change_requires_requested_status(
    async_client: AsyncClient, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)

    resp = await async_client.post(
        REQUESTS_URL,
        json={"contract_id": str(contract.id), "type": "status_change"},
        headers=employee.headers,
    )

    assert resp.status_code == 422


async def test_invalid_request_type_is_422(async_client: AsyncClient, employee, contract_factory) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    resp = await async_client.post(
        REQUESTS_URL,
        json={"contract_id": str(contract.id), "type": "promotion"},
        headers=employee.headers,
    )
    assert resp.status_code == 422


async def test_employee_lists_only_own_requests(
    async_client: AsyncClient, employee, other_employee, contract_factory
) -> None:
    mine = await _contract_for(contract_factory, employee.id)
    theirs = await _contract_for(contract_factory, other_employee.id)
    await _submit(async_client, employee.headers, mine.id)
    await _submit(async_client, other_employee.headers, theirs.id)

    resp = await async_client.get(REQUESTS_URL, headers=employee.headers)

    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["contract_id"] == str(mine.id)


# ---------------------------------------------------------------------------
# Approval
# ---------------------------------------------------------------------------


async def test_approve_termination_terminates_contract(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id, status=ContractStatus.EXPIRING_SOON)
    request = await _submit(async_client, employee.headers, contract.id, reason="Moving abroad")

    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve", "admin_notes": "end of project"},
        headers=admin.headers,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["processed_by"] == str(admin.id)
    assert data["processed_at"] is not None
    assert data["admin_notes"] == "end of project"

    await db_session.refresh(contract)
    assert contract.status == ContractStatus.TERMINATED
    assert len(contract.status_history) == 1
    entry = contract.status_history[0]
    assert entry["status"] == "Terminated"
    assert entry["previous_status"] == "Expiring Soon"
    assert entry["reason"] == "termination approved by admin: end of project"
    assert entry["updated_by"] == "Ada Admin"


async def test_approve_renewal_reactivates_contract(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id, status=ContractStatus.EXPIRED)
    request = await _submit(async_client, employee.headers, contract.id, type="renewal")

    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=admin.headers,
    )

    await db_session.refresh(contract)
    assert contract.status == ContractStatus.ACTIVE
    assert contract.status_history[-1]["reason"] == "renewal approved by admin"


async def test_approve_status_change_applies_requested_status(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(
        async_client, employee.headers, contract.id, type="status_change", requested_status="Expiring Soon"
    )
    assert request["requested_status"] == "Expiring Soon"

    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=admin.headers,
    )

    await db_session.refresh(contract)
    assert contract.status == ContractStatus.EXPIRING_SOON


async def test_terminated_contract_survives_reconciliation(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=admin.headers,
    )

    resp = await async_client.post("/contracts/status", headers=admin.headers)

    assert resp.json()["processed"] == 0
    await db_session.refresh(contract)
    assert contract.status == ContractStatus.TERMINATED


# ---------------------------------------------------------------------------
# Rejection and double-processing
# ---------------------------------------------------------------------------


async def test_reject_leaves_contract_untouched(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)

    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "reject", "admin_notes": "Not now"},
        headers=admin.headers,
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    await db_session.refresh(contract)
    assert contract.status == ContractStatus.ACTIVE
    assert contract.status_history == []


async def test_processing_twice_is_409_without_further_changes(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    body = {"request_id": request["id"], "action": "approve"}
    first = await async_client.post(ADMIN_REQUESTS_URL, json=body, headers=admin.headers)
    assert first.status_code == 200

    again = await async_client.post(ADMIN_REQUESTS_URL, json=body, headers=admin.headers)
    flipped = await async_client.post(
        ADMIN_REQUESTS_URL, json={**body, "action": "reject"}, headers=admin.headers
    )

    assert again.status_code == 409
    assert again.json()["detail"] == "Request has already been processed"
    assert flipped.status_code == 409
    await db_session.refresh(contract)
    assert len(contract.status_history) == 1
    stored = await db_session.get(ContractRequest, uuid.UUID(request["id"]))
    assert stored is not None
    assert stored.status == "approved"


async def test_new_request_allowed_after_previous_was_processed(
    async_client: AsyncClient, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "reject"},
        headers=admin.headers,
    )

    await _submit(async_client, employee.headers, contract.id, type="renewal")


async def test_process_unknown_request_is_404(async_client: AsyncClient, admin) -> None:
    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": str(uuid.uuid4()), "action": "approve"},
        headers=admin.headers,
    )
    assert resp.status_code == 404


async def test_invalid_action_is_422(async_client: AsyncClient, admin) -> None:
    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": str(uuid.uuid4()), "action": "maybe"},
        headers=admin.headers,
    )
    assert resp.status_code == 422


async def test_processing_requires_admin(async_client: AsyncClient, employee, contract_factory) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)

    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=employee.headers,
    )

    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Admin listing, audit and repair query
# ---------------------------------------------------------------------------


async def test_admin_lists_requests_by_status(async_client: AsyncClient, admin, employee, contract_factory) -> None:
    first = await _contract_for(contract_factory, employee.id)
    second = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, first.id)
    await _submit(async_client, employee.headers, second.id)
    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "reject"},
        headers=admin.headers,
    )

    pending = await async_client.get(ADMIN_REQUESTS_URL, params={"status": "pending"}, headers=admin.headers)
    everything = await async_client.get(ADMIN_REQUESTS_URL, headers=admin.headers)

    assert pending.json()["total"] == 1
    assert everything.json()["total"] == 2


async def test_request_lifecycle_is_audited(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=admin.headers,
    )

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(request["id"]))
    )
    by_action = {e.action: e for e in result.scalars().all()}
    assert set(by_action) == {"CREATE", "APPROVE"}
    assert by_action["CREATE"].actor_id == employee.id
    assert by_action["APPROVE"].actor_id == admin.id
    assert by_action["APPROVE"].before_json["status"] == "pending"
    assert by_action["APPROVE"].after_json["status"] == "approved"


async def test_find_unapplied_approvals(db_session: AsyncSession, admin, employee, contract_factory) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    # An approval written without touching the contract.
    orphan = ContractRequest(
        employee_id=employee.id,
        contract_id=contract.id,
        type="termination",
        current_status="Active",
        status=RequestStatus.APPROVED.value,
        processed_by=admin.id,
        processed_at=datetime.now(UTC),
    )
    db_session.add(orphan)
    await db_session.commit()

    assert [r.id for r in await find_unapplied_approvals(db_session)] == [orphan.id]


async def test_find_unapplied_approvals_with_earlier_same_type_approval(
    async_client: AsyncClient, db_session: AsyncSession, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    applied = await _submit(async_client, employee.headers, contract.id, type="renewal")
    resp = await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": applied["id"], "action": "approve"},
        headers=admin.headers,
    )
    assert resp.status_code == 200

    # A second renewal approval whose contract update never landed.
    orphan = ContractRequest(
        employee_id=employee.id,
        contract_id=contract.id,
        type="renewal",
        current_status="Active",
        status=RequestStatus.APPROVED.value,
        processed_by=admin.id,
        processed_at=datetime.now(UTC) + timedelta(minutes=5),
    )
    db_session.add(orphan)
    await db_session.commit()

    unapplied = await find_unapplied_approvals(db_session)

    assert [r.id for r in unapplied] == [orphan.id]


def test_approval_reason_without_notes() -> None:
    assert approval_reason("termination", None) == "termination approved by admin"
    assert approval_reason("renewal", "") == "renewal approved by admin"
    assert approval_reason("renewal", "two more years") == "renewal approved by admin: two more years"


async def test_get_request_owner_only(
    async_client: AsyncClient, admin, employee, other_employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    url = f"{REQUESTS_URL}/{request['id']}"

    assert (await async_client.get(url, headers=employee.headers)).status_code == 200
    assert (await async_client.get(url, headers=admin.headers)).status_code == 200
    assert (await async_client.get(url, headers=other_employee.headers)).status_code == 403


async def test_unapplied_endpoint_empty_after_normal_approval(
    async_client: AsyncClient, admin, employee, contract_factory
) -> None:
    contract = await _contract_for(contract_factory, employee.id)
    request = await _submit(async_client, employee.headers, contract.id)
    await async_client.post(
        ADMIN_REQUESTS_URL,
        json={"request_id": request["id"], "action": "approve"},
        headers=admin.headers,
    )

    resp = await async_client.get(f"{ADMIN_REQUESTS_URL}/unapplied", headers=admin.headers)

    assert resp.status_code == 200
    assert resp.json() == {"items": [], "total": 0}
