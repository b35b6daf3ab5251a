from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests. PENDING is the only non-terminal state."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class ViolationKind(enum.StrEnum):
    """Rule that rejected a leave submission."""

    BACKDATED = "BACKDATED"
    MAX_CONSECUTIVE_DAYS = "MAX_CONSECUTIVE_DAYS"
    NOTICE_PERIOD = "NOTICE_PERIOD"
    MAX_DAYS_PER_YEAR = "MAX_DAYS_PER_YEAR"
    APPROVER_REQUIRED = "APPROVER_REQUIRED"
    SELF_APPROVAL = "SELF_APPROVAL"


class LeaveEventType(enum.StrEnum):
    """Domain events emitted by request transitions."""

    SUBMITTED = "leave.request.submitted"
    APPROVED = "leave.request.approved"
    REJECTED = "leave.request.rejected"
    CANCELLED = "leave.request.cancelled"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_TYPE = "LEAVE_TYPE"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    ENTITLEMENT = "ENTITLEMENT"
    POLICY = "POLICY"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    CARRY_FORWARD = "CARRY_FORWARD"
