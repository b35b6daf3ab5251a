from sqlmodel import SQLModel

from leaveflow.models.audit import AuditLog
from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.models.enums import (
    ACTIVE_STATUSES,
    AuditAction,
    AuditEntityType,
    LeaveEventType,
    LeaveStatus,
    ViolationKind,
)
from leaveflow.models.holiday import Holiday
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.policy import LeavePolicy
from leaveflow.models.request import LeaveRequest

__all__ = [
    "ACTIVE_STATUSES",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Holiday",
    "LeaveEntitlement",
    "LeaveEventType",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "ViolationKind",
]
