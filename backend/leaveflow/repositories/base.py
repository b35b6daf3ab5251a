"""Storage contract the leave engine depends on.

The engine never talks to a database directly: every read and write goes
through a ``LeaveRepository``. Implementations must honour two rules:

* ``update_balance`` is a single conditional update. It either applies the
  whole delta (when the guard conditions hold) or nothing, and returns
  ``None`` when nothing was applied.
* ``user_lock`` serialises work on one user's requests and balances until the
  unit of work is committed or rolled back.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from leaveflow.models.audit import AuditLog
    from leaveflow.models.entitlement import LeaveEntitlement
    from leaveflow.models.enums import LeaveStatus
    from leaveflow.models.holiday import Holiday
    from leaveflow.models.leave_type import LeaveType
    from leaveflow.models.policy import LeavePolicy
    from leaveflow.models.request import LeaveRequest
    from leaveflow.services.users import UserInfo


class RepositoryError(Exception):
    """Data-access failure raised by a repository implementation."""


@runtime_checkable
class LeaveRepository(Protocol):
    """Persistence operations used by the leave engine."""

    # -- directory ------------------------------------------------------------

    async def get_user_by_id(self, user_id: uuid.UUID) -> UserInfo | None: ...

    def user_lock(self, user_id: uuid.UUID) -> AbstractAsyncContextManager[None]: ...

    # -- leave types ----------------------------------------------------------

    async def get_leave_type(self, organization_id: uuid.UUID, leave_type_id: uuid.UUID) -> LeaveType | None: ...

    async def list_leave_types(self, organization_id: uuid.UUID) -> list[LeaveType]: ...

    async def add_leave_type(self, leave_type: LeaveType) -> LeaveType: ...

    async def save_leave_type(self, leave_type: LeaveType) -> LeaveType: ...

    async def delete_leave_type(self, leave_type: LeaveType) -> None: ...

    async def leave_type_in_use(self, leave_type_id: uuid.UUID) -> bool: ...

    # -- policies -------------------------------------------------------------

    async def get_leave_policy(self, organization_id: uuid.UUID, country: str) -> LeavePolicy | None: ...

    async def list_leave_policies(self, organization_id: uuid.UUID) -> list[LeavePolicy]: ...

    async def add_leave_policy(self, policy: LeavePolicy) -> LeavePolicy: ...

    # -- holidays -------------------------------------------------------------

    async def get_holiday(self, organization_id: uuid.UUID, holiday_id: uuid.UUID) -> Holiday | None: ...

    async def list_holidays(
        self,
        organization_id: uuid.UUID,
        country: str | None = None,
        year: int | None = None,
    ) -> list[Holiday]: ...

    async def add_holiday(self, holiday: Holiday) -> Holiday: ...

    async def delete_holiday(self, holiday: Holiday) -> None: ...

    # -- requests -------------------------------------------------------------

    async def get_request(self, organization_id: uuid.UUID, request_id: uuid.UUID) -> LeaveRequest | None: ...

    async def list_requests(
        self,
        organization_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        leave_type_id: uuid.UUID | None = None,
        status: LeaveStatus | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[LeaveRequest], int]: ...

    async def find_overlapping_requests(self, user_id: uuid.UUID, start: date, end: date) -> list[LeaveRequest]:
        """PENDING/APPROVED requests of the user intersecting ``[start, end]``.

        Raises ``RepositoryError`` when the store cannot be queried.
        """
        ...

    async def add_request(self, request: LeaveRequest) -> LeaveRequest: ...

    async def save_request(self, request: LeaveRequest) -> LeaveRequest: ...

    # -- entitlements ---------------------------------------------------------

    async def get_entitlement(
        self,
        user_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        year: int,
    ) -> LeaveEntitlement | None: ...

    async def list_entitlements(
        self,
        organization_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        year: int | None = None,
    ) -> list[LeaveEntitlement]: ...

    async def add_entitlement(self, entitlement: LeaveEntitlement) -> LeaveEntitlement: ...

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
        """Apply a balance delta in one conditional update.

        ``remaining_days`` moves by ``-(pending_delta + used_delta)`` so the
        balance identity is preserved by construction. The update only applies
        while ``remaining_days >= min_remaining`` and ``pending_days >=
        min_pending``; otherwise nothing changes and ``None`` is returned.
        """
        ...

    # -- audit and unit of work -----------------------------------------------

    async def add_audit_log(self, entry: AuditLog) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
