# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Organization-scoped leave category (e.g. Annual, Sick)."""

    __tablename__ = "leave_type"
    __table_args__ = (sa.UniqueConstraint("organization_id", "name", name="uq_leave_type_org_name"),)

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_paid: bool = True
    requires_approval: bool = True
    max_consecutive_days: int | None = None
    max_days_per_year: int | None = None
    created_by: uuid.UUID
