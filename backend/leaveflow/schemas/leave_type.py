# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateLeaveTypeRequest(BaseModel):
    """Request body for creating a leave type."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_paid: bool = True
    requires_approval: bool = True
    max_consecutive_days: int | None = Field(default=None, gt=0)
    max_days_per_year: int | None = Field(default=None, gt=0, le=365)


class UpdateLeaveTypeRequest(BaseModel):
    """Partial update for a leave type that is not referenced yet."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_paid: bool | None = None
    requires_approval: bool | None = None
    max_consecutive_days: int | None = Field(default=None, gt=0)
    max_days_per_year: int | None = Field(default=None, gt=0, le=365)


class LeaveTypeResponse(BaseModel):
    """Response schema for a leave type."""

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    description: str | None
    is_paid: bool
    requires_approval: bool
    max_consecutive_days: int | None
    max_days_per_year: int | None
    created_by: uuid.UUID
    created_at: datetime


class LeaveTypeListResponse(BaseModel):
    """All leave types of an organization."""

    items: list[LeaveTypeResponse]
    total: int
