# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leaveflow.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """One employee's ask for whole working days off, with approval state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_org_status", "organization_id", "status"),
        sa.Index("ix_leave_request_user_dates", "user_id", "start_date", "end_date"),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_range"),
        sa.CheckConstraint("days_requested >= 1", name="ck_leave_request_days"),
    )

    organization_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="RESTRICT"), nullable=False, index=True
        ),
    )
    start_date: date
    end_date: date
    days_requested: int
    entitlement_year: int
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    reason: str | None = Field(default=None, max_length=1000)
    approver_id: uuid.UUID | None = None
    approver_comments: str | None = Field(default=None, max_length=1000)
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: uuid.UUID | None = None
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
