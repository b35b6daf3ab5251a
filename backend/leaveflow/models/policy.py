# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class LeavePolicy(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Organization + country leave settings. Read-only input to validation."""

    __tablename__ = "leave_policy"
    __table_args__ = (sa.UniqueConstraint("organization_id", "country", name="uq_leave_policy_org_country"),)

    organization_id: uuid.UUID = Field(index=True)
    country: str = Field(max_length=2)
    annual_leave_days: int = 0
    sick_leave_days: int = 0
    maternity_leave_days: int = 0
    paternity_leave_days: int = 0
    carryover_max_days: int = 0
    carryover_expiry_months: int = 3
    notice_period_days: int = 0
    created_by: uuid.UUID
