# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateLeavePolicyRequest(BaseModel):
    """Request body for an organization's leave policy in one country."""

    country: str = Field(min_length=2, max_length=2, pattern=r"^[A-Za-z]{2}$")
    annual_leave_days: int = Field(ge=0, le=50)
    sick_leave_days: int = Field(ge=0, le=50)
    maternity_leave_days: int = Field(ge=0, le=365)
    paternity_leave_days: int = Field(ge=0, le=365)
    carryover_max_days: int = Field(ge=0, le=30)
    carryover_expiry_months: int = Field(ge=1, le=24)
    notice_period_days: int = Field(ge=0, le=90)


class LeavePolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    organization_id: uuid.UUID
    country: str
    annual_leave_days: int
    sick_leave_days: int
    maternity_leave_days: int
    paternity_leave_days: int
    carryover_max_days: int
    carryover_expiry_months: int
    notice_period_days: int
    created_at: datetime


class LeavePolicyListResponse(BaseModel):
    """All leave policies of an organization."""

    items: list[LeavePolicyResponse]
    total: int
