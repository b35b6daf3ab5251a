"""API tests for the leave request workflow: submit, approve, reject, cancel,
balance effects, policy rules, authorization, events and audit.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from leaveflow.models.audit import AuditLog
from leaveflow.models.enums import LeaveEventType

from factories import ADMIN_ID, EMPLOYEE_ID, MANAGER_ID, ORG_ID, auth_headers, next_monday

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.services.events import InMemoryEventPublisher

ADMIN_HEADERS = auth_headers(ADMIN_ID, "admin")
MANAGER_HEADERS = auth_headers(MANAGER_ID)
EMPLOYEE_HEADERS = auth_headers(EMPLOYEE_ID)
BASE = f"/organizations/{ORG_ID}"
REQUESTS_URL = f"{BASE}/requests"

MONDAY = next_monday()
FRIDAY = MONDAY + timedelta(days=4)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _create_leave_type(client: AsyncClient, **overrides: Any) -> str:
    payload: dict[str, Any] = {"name": "Annual", "is_paid": True, "requires_approval": True}
    payload.update(overrides)
    resp = await client.post(f"{BASE}/leave-types", json=payload, headers=ADMIN_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


async def _grant(client: AsyncClient, leave_type_id: str, total_days: int = 10, year: int | None = None) -> None:
    resp = await client.post(
        f"{BASE}/entitlements",
        json={
            "user_id": str(EMPLOYEE_ID),
            "leave_type_id": leave_type_id,
            "year": year or MONDAY.year,
            "total_days": total_days,
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201, resp.text


async def _setup(client: AsyncClient, total_days: int = 10, **type_overrides: Any) -> str:
    leave_type_id = await _create_leave_type(client, **type_overrides)
    await _grant(client, leave_type_id, total_days)
    return leave_type_id


async def _submit(
    client: AsyncClient,
    leave_type_id: str,
    start: date = MONDAY,
    end: date = FRIDAY,
    headers: dict[str, str] = EMPLOYEE_HEADERS,
    **extra: Any,
) -> Any:
    payload = {"leave_type_id": leave_type_id, "start_date": start.isoformat(), "end_date": end.isoformat(), **extra}
    return await client.post(REQUESTS_URL, json=payload, headers=headers)


async def _balance(client: AsyncClient, leave_type_id: str) -> tuple[int, int, int]:
    resp = await client.get(
        f"{BASE}/entitlements", params={"year": MONDAY.year}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 200
    entitlement = next(e for e in resp.json()["items"] if e["leave_type_id"] == leave_type_id)
    return entitlement["used_days"], entitlement["pending_days"], entitlement["remaining_days"]


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_request(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)

    resp = await _submit(async_client, type_id, reason="Vacation")

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["days_requested"] == 5
    assert data["user_id"] == str(EMPLOYEE_ID)
    assert data["approver_id"] == str(MANAGER_ID)
    assert data["entitlement_year"] == MONDAY.year
    assert data["reason"] == "Vacation"
    assert await _balance(async_client, type_id) == (0, 5, 5)


async def test_submit_publishes_event(async_client: AsyncClient, event_publisher: InMemoryEventPublisher) -> None:
    type_id = await _setup(async_client)
    resp = await _submit(async_client, type_id)

    assert [e.type for e in event_publisher.published] == [LeaveEventType.SUBMITTED]
    assert str(event_publisher.published[0].request_id) == resp.json()["id"]


async def test_submit_exceeding_balance_409(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client, total_days=3)

    resp = await _submit(async_client, type_id)

    assert resp.status_code == 409
    assert resp.json()["error"] == "InsufficientBalanceError"
    assert await _balance(async_client, type_id) == (0, 0, 3)


async def test_submit_overlap_409(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client, total_days=20)
    await _submit(async_client, type_id)

    resp = await _submit(async_client, type_id, start=FRIDAY, end=FRIDAY + timedelta(days=3))

    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "ConflictError"
    assert body["retryable"] is False
    assert await _balance(async_client, type_id) == (0, 5, 15)


async def test_submit_backdated_422(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    start = date.today() - timedelta(days=7)

    resp = await _submit(async_client, type_id, start=start, end=start + timedelta(days=1))

    assert resp.status_code == 422
    assert resp.json()["kind"] == "BACKDATED"


async def test_submit_weekend_only_400(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    saturday = MONDAY - timedelta(days=2)

    resp = await _submit(async_client, type_id, start=saturday, end=saturday + timedelta(days=1))

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRangeError"


async def test_submit_end_before_start_422(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    resp = await _submit(async_client, type_id, start=FRIDAY, end=MONDAY)
    assert resp.status_code == 422


async def test_submit_inside_notice_period_422(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    policy = {
        "country": "US",
        "annual_leave_days": 20,
        "sick_leave_days": 10,
        "maternity_leave_days": 90,
        "paternity_leave_days": 10,
        "carryover_max_days": 5,
        "carryover_expiry_months": 3,
        "notice_period_days": 60,
    }
    assert (await async_client.post(f"{BASE}/policies", json=policy, headers=ADMIN_HEADERS)).status_code == 201

    resp = await _submit(async_client, type_id)

    assert resp.status_code == 422
    assert resp.json()["kind"] == "NOTICE_PERIOD"


async def test_submit_without_entitlement_404(async_client: AsyncClient) -> None:
    type_id = await _create_leave_type(async_client)
    resp = await _submit(async_client, type_id)
    assert resp.status_code == 404


async def test_submit_without_approval_requirement_stays_pending(
    async_client: AsyncClient, event_publisher: InMemoryEventPublisher
) -> None:
    type_id = await _setup(async_client, name="Volunteering", requires_approval=False)

    resp = await _submit(async_client, type_id, end=MONDAY + timedelta(days=1))

    assert resp.status_code == 201
    assert resp.json()["status"] == "PENDING"
    assert [e.type for e in event_publisher.published] == [LeaveEventType.SUBMITTED]
    assert await _balance(async_client, type_id) == (0, 2, 8)


async def test_submit_naming_self_as_approver_422(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)

    resp = await _submit(async_client, type_id, approver_id=str(EMPLOYEE_ID))

    assert resp.status_code == 422
    assert resp.json()["kind"] == "SELF_APPROVAL"
    assert await _balance(async_client, type_id) == (0, 0, 10)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def test_approve_request(async_client: AsyncClient, event_publisher: InMemoryEventPublisher) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.post(
        f"{REQUESTS_URL}/{request_id}/approve", json={"comments": "Have fun"}, headers=MANAGER_HEADERS
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "APPROVED"
    assert data["approver_comments"] == "Have fun"
    assert data["decided_by"] == str(MANAGER_ID)
    assert data["approved_at"] is not None
    assert await _balance(async_client, type_id) == (5, 0, 5)
    assert event_publisher.published[-1].type == LeaveEventType.APPROVED


async def test_approve_twice_409(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]
    await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=MANAGER_HEADERS)

    assert resp.status_code == 409
    assert resp.json()["error"] == "InvalidStateTransitionError"
    assert await _balance(async_client, type_id) == (5, 0, 5)


async def test_requester_cannot_approve_403(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 403
    assert await _balance(async_client, type_id) == (0, 5, 5)


async def test_admin_can_reject(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.post(
        f"{REQUESTS_URL}/{request_id}/reject", json={"comments": "Release week"}, headers=ADMIN_HEADERS
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "REJECTED"
    assert await _balance(async_client, type_id) == (0, 0, 10)


async def test_cancel_by_requester(async_client: AsyncClient, event_publisher: InMemoryEventPublisher) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.post(
        f"{REQUESTS_URL}/{request_id}/cancel", json={"comments": "Changed plans"}, headers=EMPLOYEE_HEADERS
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"
    assert await _balance(async_client, type_id) == (0, 0, 10)
    cancelled = event_publisher.published[-1]
    assert cancelled.type == LeaveEventType.CANCELLED
    assert cancelled.payload["reason"] == "Changed plans"


async def test_cancel_by_manager_403(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/cancel", headers=MANAGER_HEADERS)

    assert resp.status_code == 403


async def test_cancel_approved_request_409(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]
    await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=MANAGER_HEADERS)

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/cancel", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 409
    assert await _balance(async_client, type_id) == (5, 0, 5)


async def test_cancelled_dates_can_be_requested_again(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]
    await async_client.post(f"{REQUESTS_URL}/{request_id}/cancel", headers=EMPLOYEE_HEADERS)

    resp = await _submit(async_client, type_id)

    assert resp.status_code == 201
    assert await _balance(async_client, type_id) == (0, 5, 5)


async def test_approve_unknown_request_404(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{REQUESTS_URL}/{uuid.uuid4()}/approve", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def test_get_request(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]

    resp = await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=EMPLOYEE_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["id"] == request_id


async def test_list_requests_by_status(async_client: AsyncClient) -> None:
    type_id = await _setup(async_client, total_days=20)
    first = (await _submit(async_client, type_id)).json()["id"]
    next_week = MONDAY + timedelta(days=7)
    await _submit(async_client, type_id, start=next_week, end=next_week + timedelta(days=1))
    await async_client.post(f"{REQUESTS_URL}/{first}/approve", headers=MANAGER_HEADERS)

    pending = await async_client.get(REQUESTS_URL, params={"status": "PENDING"}, headers=MANAGER_HEADERS)
    everything = await async_client.get(REQUESTS_URL, params={"user_id": str(EMPLOYEE_ID)}, headers=MANAGER_HEADERS)

    assert pending.json()["total"] == 1
    assert pending.json()["items"][0]["days_requested"] == 2
    assert everything.json()["total"] == 2


async def test_organization_mismatch_403(async_client: AsyncClient) -> None:
    headers = auth_headers(EMPLOYEE_ID, organization_id=uuid.uuid4())
    resp = await async_client.get(REQUESTS_URL, headers=headers)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


async def test_transitions_are_audited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    type_id = await _setup(async_client)
    request_id = (await _submit(async_client, type_id)).json()["id"]
    await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=MANAGER_HEADERS)

    result = await db_session.execute(
        select(AuditLog)
        .where(col(AuditLog.entity_id) == uuid.UUID(request_id))
        .order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())
    assert [e.action for e in entries] == ["SUBMIT", "APPROVE"]
    assert entries[1].actor_id == MANAGER_ID
    assert entries[1].before_json is not None
    assert entries[1].before_json["status"] == "PENDING"
    assert entries[1].after_json is not None
    assert entries[1].after_json["status"] == "APPROVED"
