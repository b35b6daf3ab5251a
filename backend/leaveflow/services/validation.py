"""Submission rules for leave requests.

The checks run in a fixed order and stop at the first failure:

1. ``BACKDATED``: the leave may not start in the past.
2. ``MAX_CONSECUTIVE_DAYS``: the leave type's cap on one request.
3. ``NOTICE_PERIOD``: the country policy's minimum notice, when configured.
4. approval: whether the leave type needs an approver.
5. ``MAX_DAYS_PER_YEAR``: the leave type's yearly cap over booked days.

Nothing here touches storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leaveflow.models.enums import ViolationKind

if TYPE_CHECKING:
    from datetime import date

    from leaveflow.models.leave_type import LeaveType
    from leaveflow.models.policy import LeavePolicy


@dataclass(frozen=True)
class PolicyViolation:
    kind: ViolationKind
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Either ``ok`` with ``requires_approver``, or a single ``violation``."""

    violation: PolicyViolation | None = None
    requires_approver: bool = False

    @property
    def ok(self) -> bool:
        return self.violation is None


def _reject(kind: ViolationKind, message: str) -> ValidationResult:
    return ValidationResult(violation=PolicyViolation(kind=kind, message=message))


def validate_submission(
    leave_type: LeaveType,
    policy: LeavePolicy | None,
    start: date,
    end: date,
    days_requested: int,
    today: date,
    *,
    booked_days: int = 0,
    enforce_notice_period: bool = True,
) -> ValidationResult:
    """Run the submission rules for one request.

    ``booked_days`` is what the user already holds against the leave type in
    the benefit year (used plus pending).
    """
    if start < today:
        return _reject(ViolationKind.BACKDATED, f"Leave cannot start in the past ({start} is before {today})")

    if leave_type.max_consecutive_days is not None and days_requested > leave_type.max_consecutive_days:
        return _reject(
            ViolationKind.MAX_CONSECUTIVE_DAYS,
            f"{leave_type.name} allows at most {leave_type.max_consecutive_days} consecutive working day(s), "
            f"{days_requested} requested",
        )

    if enforce_notice_period and policy is not None and policy.notice_period_days > 0:
        notice = (start - today).days
        if notice < policy.notice_period_days:
            return _reject(
                ViolationKind.NOTICE_PERIOD,
                f"Leave must be requested {policy.notice_period_days} day(s) in advance, "
                f"{notice} day(s) given",
            )

    requires_approver = leave_type.requires_approval

    if leave_type.max_days_per_year is not None and booked_days + days_requested > leave_type.max_days_per_year:
        return _reject(
            ViolationKind.MAX_DAYS_PER_YEAR,
            f"{leave_type.name} allows at most {leave_type.max_days_per_year} day(s) per year, "
            f"{booked_days} already booked and {days_requested} requested",
        )

    return ValidationResult(requires_approver=requires_approver)
