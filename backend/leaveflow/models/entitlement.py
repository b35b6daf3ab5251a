# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class LeaveEntitlement(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Per user/leave-type/year balance, mutated only through conditional updates."""

    __tablename__ = "leave_entitlement"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "leave_type_id", "year", name="uq_entitlement_user_type_year"),
        sa.CheckConstraint(
            "remaining_days = total_days + carried_forward - used_days - pending_days",
            name="ck_entitlement_balance",
        ),
        sa.CheckConstraint("used_days >= 0 AND pending_days >= 0", name="ck_entitlement_non_negative"),
    )

    organization_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="RESTRICT"), nullable=False, index=True
        ),
    )
    year: int
    total_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    used_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    pending_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    remaining_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    carried_forward: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    expires_at: date | None = None
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
