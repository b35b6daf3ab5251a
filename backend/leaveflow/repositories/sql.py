# ruff: noqa: TC003
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import extract, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, col

from leaveflow.exceptions import DuplicateError
from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.models.enums import ACTIVE_STATUSES
from leaveflow.models.holiday import Holiday
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.policy import LeavePolicy
from leaveflow.models.request import LeaveRequest
from leaveflow.repositories.base import RepositoryError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.models.audit import AuditLog
    from leaveflow.models.enums import LeaveStatus
    from leaveflow.services.users import UserDirectory, UserInfo

_ModelT = TypeVar("_ModelT", bound=SQLModel)


class SqlLeaveRepository:
    """``LeaveRepository`` backed by an async SQLAlchemy session.

    One instance wraps one session, i.e. one unit of work. Nothing is
    committed until ``commit()`` is called.
    """

    def __init__(self, session: AsyncSession, users: UserDirectory) -> None:
        self._session = session
        self._users = users

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _insert(self, model: _ModelT, duplicate_message: str) -> _ModelT:
        """Insert inside a savepoint so a failed insert leaves the outer transaction usable."""
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError:
            raise DuplicateError(duplicate_message) from None
        return model

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    async def get_user_by_id(self, user_id: uuid.UUID) -> UserInfo | None:
        return await self._users.get_user(user_id)

    @asynccontextmanager
    async def user_lock(self, user_id: uuid.UUID) -> AsyncIterator[None]:
        """Lock the user's entitlement rows until the transaction ends."""
        await self._session.execute(
            select(col(LeaveEntitlement.id)).where(col(LeaveEntitlement.user_id) == user_id).with_for_update()
        )
        yield

    # ------------------------------------------------------------------
    # Leave types
    # ------------------------------------------------------------------

    async def get_leave_type(self, organization_id: uuid.UUID, leave_type_id: uuid.UUID) -> LeaveType | None:
        result = await self._session.execute(
            select(LeaveType).where(
                col(LeaveType.id) == leave_type_id,
                col(LeaveType.organization_id) == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_leave_types(self, organization_id: uuid.UUID) -> list[LeaveType]:
        result = await self._session.execute(
            select(LeaveType).where(col(LeaveType.organization_id) == organization_id).order_by(col(LeaveType.name))
        )
        return list(result.scalars().all())

    async def add_leave_type(self, leave_type: LeaveType) -> LeaveType:
        return await self._insert(leave_type, "Leave type with this name already exists in the organization")

    async def save_leave_type(self, leave_type: LeaveType) -> LeaveType:
        try:
            async with self._session.begin_nested():
                self._session.add(leave_type)
        except IntegrityError:
            raise DuplicateError("Leave type with this name already exists in the organization") from None
        return leave_type

    async def delete_leave_type(self, leave_type: LeaveType) -> None:
        await self._session.delete(leave_type)
        await self._session.flush()

    async def leave_type_in_use(self, leave_type_id: uuid.UUID) -> bool:
        entitlements = await self._session.execute(
            select(func.count())
            .select_from(LeaveEntitlement)
            .where(col(LeaveEntitlement.leave_type_id) == leave_type_id)
        )
        if entitlements.scalar_one() > 0:
            return True
        requests = await self._session.execute(
            select(func.count()).select_from(LeaveRequest).where(col(LeaveRequest.leave_type_id) == leave_type_id)
        )
        return requests.scalar_one() > 0

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    async def get_leave_policy(self, organization_id: uuid.UUID, country: str) -> LeavePolicy | None:
        result = await self._session.execute(
            select(LeavePolicy).where(
                col(LeavePolicy.organization_id) == organization_id,
                col(LeavePolicy.country) == country,
            )
        )
        return result.scalar_one_or_none()

    async def list_leave_policies(self, organization_id: uuid.UUID) -> list[LeavePolicy]:
        result = await self._session.execute(
            select(LeavePolicy)
            .where(col(LeavePolicy.organization_id) == organization_id)
            .order_by(col(LeavePolicy.country))
        )
        return list(result.scalars().all())

    async def add_leave_policy(self, policy: LeavePolicy) -> LeavePolicy:
        return await self._insert(policy, "A leave policy already exists for this country")

    # ------------------------------------------------------------------
    # Holidays
    # ------------------------------------------------------------------

    async def get_holiday(self, organization_id: uuid.UUID, holiday_id: uuid.UUID) -> Holiday | None:
        result = await self._session.execute(
            select(Holiday).where(
                col(Holiday.id) == holiday_id,
                col(Holiday.organization_id) == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_holidays(
        self,
        organization_id: uuid.UUID,
        country: str | None = None,
        year: int | None = None,
    ) -> list[Holiday]:
        filters = [col(Holiday.organization_id) == organization_id]
        if country is not None:
            filters.append(col(Holiday.country) == country)
        if year is not None:
            filters.append(extract("year", col(Holiday.date)) == year)

        result = await self._session.execute(select(Holiday).where(*filters).order_by(col(Holiday.date)))
        return list(result.scalars().all())

    async def add_holiday(self, holiday: Holiday) -> Holiday:
        return await self._insert(holiday, "Holiday already exists for this date")

    async def delete_holiday(self, holiday: Holiday) -> None:
        await self._session.delete(holiday)
        await self._session.flush()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def get_request(self, organization_id: uuid.UUID, request_id: uuid.UUID) -> LeaveRequest | None:
        result = await self._session.execute(
            select(LeaveRequest)
            .where(
                col(LeaveRequest.id) == request_id,
                col(LeaveRequest.organization_id) == organization_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

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
        filters = [col(LeaveRequest.organization_id) == organization_id]
        if user_id is not None:
            filters.append(col(LeaveRequest.user_id) == user_id)
        if leave_type_id is not None:
            filters.append(col(LeaveRequest.leave_type_id) == leave_type_id)
        if status is not None:
            filters.append(col(LeaveRequest.status) == status.value)

        count_result = await self._session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
        total = count_result.scalar_one()

        result = await self._session.execute(
            select(LeaveRequest)
            .where(*filters)
            .order_by(col(LeaveRequest.created_at).desc(), col(LeaveRequest.start_date).desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def find_overlapping_requests(self, user_id: uuid.UUID, start: date, end: date) -> list[LeaveRequest]:
        try:
            result = await self._session.execute(
                select(LeaveRequest).where(
                    col(LeaveRequest.user_id) == user_id,
                    col(LeaveRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
                    col(LeaveRequest.start_date) <= end,
                    col(LeaveRequest.end_date) >= start,
                )
            )
        except SQLAlchemyError as exc:
            raise RepositoryError("Could not query existing leave requests") from exc
        return list(result.scalars().all())

    async def add_request(self, request: LeaveRequest) -> LeaveRequest:
        return await self._insert(request, "Duplicate leave request")

    async def save_request(self, request: LeaveRequest) -> LeaveRequest:
        self._session.add(request)
        await self._session.flush()
        return request

    # ------------------------------------------------------------------
    # Entitlements
    # ------------------------------------------------------------------

    async def get_entitlement(
        self,
        user_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        year: int,
    ) -> LeaveEntitlement | None:
        result = await self._session.execute(
            select(LeaveEntitlement)
            .where(
                col(LeaveEntitlement.user_id) == user_id,
                col(LeaveEntitlement.leave_type_id) == leave_type_id,
                col(LeaveEntitlement.year) == year,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_entitlements(
        self,
        organization_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        year: int | None = None,
    ) -> list[LeaveEntitlement]:
        filters = [col(LeaveEntitlement.organization_id) == organization_id]
        if user_id is not None:
            filters.append(col(LeaveEntitlement.user_id) == user_id)
        if year is not None:
            filters.append(col(LeaveEntitlement.year) == year)

        result = await self._session.execute(
            select(LeaveEntitlement)
            .where(*filters)
            .order_by(col(LeaveEntitlement.year), col(LeaveEntitlement.user_id))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def add_entitlement(self, entitlement: LeaveEntitlement) -> LeaveEntitlement:
        return await self._insert(entitlement, "Entitlement already exists for this user, leave type and year")

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
        remaining_delta = -(pending_delta + used_delta)
        result = await self._session.execute(
            update(LeaveEntitlement)
            .where(
                col(LeaveEntitlement.user_id) == user_id,
                col(LeaveEntitlement.leave_type_id) == leave_type_id,
                col(LeaveEntitlement.year) == year,
                col(LeaveEntitlement.remaining_days) >= min_remaining,
                col(LeaveEntitlement.pending_days) >= min_pending,
            )
            .values(
                pending_days=col(LeaveEntitlement.pending_days) + pending_delta,
                used_days=col(LeaveEntitlement.used_days) + used_delta,
                remaining_days=col(LeaveEntitlement.remaining_days) + remaining_delta,
                version=col(LeaveEntitlement.version) + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            return None
        return await self.get_entitlement(user_id, leave_type_id, year)

    # ------------------------------------------------------------------
    # Audit and unit of work
    # ------------------------------------------------------------------

    async def add_audit_log(self, entry: AuditLog) -> None:
        self._session.add(entry)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
