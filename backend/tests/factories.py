"""Shared identities and builders for the test suite."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.policy import LeavePolicy
from leaveflow.services.users import UserInfo

if TYPE_CHECKING:
    from leaveflow.repositories.base import LeaveRepository

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()


def make_user(
    user_id: uuid.UUID | None = None,
    *,
    organization_id: uuid.UUID = ORG_ID,
    name: str = "Jane Doe",
    country: str | None = "US",
    manager_id: uuid.UUID | None = None,
) -> UserInfo:
    return UserInfo(
        id=user_id or uuid.uuid4(),
        organization_id=organization_id,
        name=name,
        email=f"{name.split()[0].lower()}@example.com",
        department="Engineering",
        country=country,
        manager_id=manager_id,
    )


def auth_headers(user_id: uuid.UUID, role: str = "employee", organization_id: uuid.UUID = ORG_ID) -> dict[str, str]:
    return {
        "X-Organization-Id": str(organization_id),
        "X-User-Id": str(user_id),
        "X-Role": role,
    }


def next_monday(today: date | None = None, weeks_ahead: int = 2) -> date:
    """A Monday at least ``weeks_ahead`` weeks in the future."""
    today = today or date.today()
    return today + timedelta(days=7 - today.weekday() + 7 * (weeks_ahead - 1))


# ---------------------------------------------------------------------------
# In-memory seeding
# ---------------------------------------------------------------------------


async def seed_leave_type(repo: LeaveRepository, **overrides: Any) -> LeaveType:
    fields: dict[str, Any] = {
        "organization_id": ORG_ID,
        "name": "Annual",
        "is_paid": True,
        "requires_approval": True,
        "created_by": ADMIN_ID,
    }
    fields.update(overrides)
    return await repo.add_leave_type(LeaveType(**fields))


async def seed_entitlement(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    total_days: int = 10,
    carried_forward: int = 0,
) -> LeaveEntitlement:
    return await repo.add_entitlement(
        LeaveEntitlement(
            organization_id=ORG_ID,
            user_id=user_id,
            leave_type_id=leave_type_id,
            year=year,
            total_days=total_days,
            carried_forward=carried_forward,
            remaining_days=total_days + carried_forward,
        )
    )


async def seed_policy(repo: LeaveRepository, country: str = "US", **overrides: Any) -> LeavePolicy:
    fields: dict[str, Any] = {
        "organization_id": ORG_ID,
        "country": country,
        "annual_leave_days": 20,
        "sick_leave_days": 10,
        "carryover_max_days": 5,
        "carryover_expiry_months": 3,
        "notice_period_days": 0,
        "created_by": ADMIN_ID,
    }
    fields.update(overrides)
    return await repo.add_leave_policy(LeavePolicy(**fields))
