# ruff: noqa: TC003
from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date
from typing import TYPE_CHECKING

from leaveflow.exceptions import DuplicateError
from leaveflow.models.base import now_utc
from leaveflow.models.enums import ACTIVE_STATUSES
from leaveflow.services.users import InMemoryUserDirectory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from leaveflow.models.audit import AuditLog
    from leaveflow.models.entitlement import LeaveEntitlement
    from leaveflow.models.enums import LeaveStatus
    from leaveflow.models.holiday import Holiday
    from leaveflow.models.leave_type import LeaveType
    from leaveflow.models.policy import LeavePolicy
    from leaveflow.models.request import LeaveRequest
    from leaveflow.services.users import UserDirectory, UserInfo


class InMemoryLeaveRepository:
    """Non-transactional ``LeaveRepository`` for development and engine tests.

    Writes are visible immediately and ``rollback`` is a no-op, so the
    engine's compensating actions are the only thing keeping balances
    consistent after a failure.
    """

    def __init__(self, users: UserDirectory | None = None) -> None:
        self.users: UserDirectory = users if users is not None else InMemoryUserDirectory()
        self.leave_types: dict[uuid.UUID, LeaveType] = {}
        self.policies: dict[uuid.UUID, LeavePolicy] = {}
        self.holidays: dict[uuid.UUID, Holiday] = {}
        self.requests: dict[uuid.UUID, LeaveRequest] = {}
        self.entitlements: dict[uuid.UUID, LeaveEntitlement] = {}
        self.audit_log: list[AuditLog] = []
        self.commits = 0
        self.rollbacks = 0
        self._locks: defaultdict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    # -- directory ------------------------------------------------------------

    async def get_user_by_id(self, user_id: uuid.UUID) -> UserInfo | None:
        return await self.users.get_user(user_id)

    @asynccontextmanager
    async def user_lock(self, user_id: uuid.UUID) -> AsyncIterator[None]:
        async with self._locks[user_id]:
            yield

    # -- leave types ----------------------------------------------------------

    async def get_leave_type(self, organization_id: uuid.UUID, leave_type_id: uuid.UUID) -> LeaveType | None:
        leave_type = self.leave_types.get(leave_type_id)
        if leave_type is None or leave_type.organization_id != organization_id:
            return None
        return leave_type

    async def list_leave_types(self, organization_id: uuid.UUID) -> list[LeaveType]:
        items = [t for t in self.leave_types.values() if t.organization_id == organization_id]
        return sorted(items, key=lambda t: t.name)

    def _check_leave_type_name(self, leave_type: LeaveType) -> None:
        for other in self.leave_types.values():
            if (
                other.id != leave_type.id
                and other.organization_id == leave_type.organization_id
                and other.name == leave_type.name
            ):
                raise DuplicateError("Leave type with this name already exists in the organization")

    async def add_leave_type(self, leave_type: LeaveType) -> LeaveType:
        self._check_leave_type_name(leave_type)
        self.leave_types[leave_type.id] = leave_type
        return leave_type

    async def save_leave_type(self, leave_type: LeaveType) -> LeaveType:
        self._check_leave_type_name(leave_type)
        leave_type.updated_at = now_utc()
        self.leave_types[leave_type.id] = leave_type
        return leave_type

    async def delete_leave_type(self, leave_type: LeaveType) -> None:
        self.leave_types.pop(leave_type.id, None)

    async def leave_type_in_use(self, leave_type_id: uuid.UUID) -> bool:
        return any(e.leave_type_id == leave_type_id for e in self.entitlements.values()) or any(
            r.leave_type_id == leave_type_id for r in self.requests.values()
        )

    # -- policies -------------------------------------------------------------

    async def get_leave_policy(self, organization_id: uuid.UUID, country: str) -> LeavePolicy | None:
        for policy in self.policies.values():
            if policy.organization_id == organization_id and policy.country == country:
                return policy
        return None

    async def list_leave_policies(self, organization_id: uuid.UUID) -> list[LeavePolicy]:
        items = [p for p in self.policies.values() if p.organization_id == organization_id]
        return sorted(items, key=lambda p: p.country)

    async def add_leave_policy(self, policy: LeavePolicy) -> LeavePolicy:
        if await self.get_leave_policy(policy.organization_id, policy.country) is not None:
            raise DuplicateError("A leave policy already exists for this country")
        self.policies[policy.id] = policy
        return policy

    # -- holidays -------------------------------------------------------------

    async def get_holiday(self, organization_id: uuid.UUID, holiday_id: uuid.UUID) -> Holiday | None:
        holiday = self.holidays.get(holiday_id)
        if holiday is None or holiday.organization_id != organization_id:
            return None
        return holiday

    async def list_holidays(
        self,
        organization_id: uuid.UUID,
        country: str | None = None,
        year: int | None = None,
    ) -> list[Holiday]:
        items = [
            h
            for h in self.holidays.values()
            if h.organization_id == organization_id
            and (country is None or h.country == country)
            and (year is None or h.date.year == year)
        ]
        return sorted(items, key=lambda h: h.date)

    async def add_holiday(self, holiday: Holiday) -> Holiday:
        for other in self.holidays.values():
            if (other.organization_id, other.country, other.date) == (
                holiday.organization_id,
                holiday.country,
                holiday.date,
            ):
                raise DuplicateError("Holiday already exists for this date")
        self.holidays[holiday.id] = holiday
        return holiday

    async def delete_holiday(self, holiday: Holiday) -> None:
        self.holidays.pop(holiday.id, None)

    # -- requests -------------------------------------------------------------

    async def get_request(self, organization_id: uuid.UUID, request_id: uuid.UUID) -> LeaveRequest | None:
        request = self.requests.get(request_id)
        if request is None or request.organization_id != organization_id:
            return None
        return request

    async def list_requests(
        self,
        organization_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        leave_type_id: uuid.UUID | None = None,
        status: LeaveStatus | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[LeaveRequest], int]:
        items = [
            r
            for r in self.requests.values()
            if r.organization_id == organization_id
            and (user_id is None or r.user_id == user_id)
            and (leave_type_id is None or r.leave_type_id == leave_type_id)
            and (status is None or r.status == status)
        ]
        items.sort(key=lambda r: (r.created_at, r.start_date), reverse=True)
        return items[offset : offset + limit], len(items)

    async def find_overlapping_requests(self, user_id: uuid.UUID, start: date, end: date) -> list[LeaveRequest]:
        return [
            r
            for r in self.requests.values()
            if r.user_id == user_id and r.status in ACTIVE_STATUSES and r.start_date <= end and r.end_date >= start
        ]

    async def add_request(self, request: LeaveRequest) -> LeaveRequest:
        self.requests[request.id] = request
        return request

    async def save_request(self, request: LeaveRequest) -> LeaveRequest:
        request.updated_at = now_utc()
        self.requests[request.id] = request
        return request

    # -- entitlements ---------------------------------------------------------

    async def get_entitlement(
        self,
        user_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        year: int,
    ) -> LeaveEntitlement | None:
        for entitlement in self.entitlements.values():
            if (entitlement.user_id, entitlement.leave_type_id, entitlement.year) == (user_id, leave_type_id, year):
                return entitlement
        return None

    async def list_entitlements(
        self,
        organization_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        year: int | None = None,
    ) -> list[LeaveEntitlement]:
        items = [
            e
            for e in self.entitlements.values()
            if e.organization_id == organization_id
            and (user_id is None or e.user_id == user_id)
            and (year is None or e.year == year)
        ]
        return sorted(items, key=lambda e: (e.year, str(e.user_id)))

    async def add_entitlement(self, entitlement: LeaveEntitlement) -> LeaveEntitlement:
        existing = await self.get_entitlement(entitlement.user_id, entitlement.leave_type_id, entitlement.year)
        if existing is not None:
            raise DuplicateError("Entitlement already exists for this user, leave type and year")
        self.entitlements[entitlement.id] = entitlement
        return entitlement

    async def update_balance(
        self,
        user_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        year: int,
        *,
        pending_delta: int,
        used_delta: int,
        min_remaining: int = 0,
        min_pending: int = 0,
    ) -> LeaveEntitlement | None:
        # No await between the guard and the write: atomic on the event loop.
        entitlement = await self.get_entitlement(user_id, leave_type_id, year)
        if entitlement is None:
            return None
        if entitlement.remaining_days < min_remaining or entitlement.pending_days < min_pending:
            return None
        entitlement.pending_days += pending_delta
        entitlement.used_days += used_delta
        entitlement.remaining_days -= pending_delta + used_delta
        entitlement.version += 1
        entitlement.updated_at = now_utc()
        return entitlement

    # -- audit and unit of work -----------------------------------------------

    async def add_audit_log(self, entry: AuditLog) -> None:
        self.audit_log.append(entry)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1
