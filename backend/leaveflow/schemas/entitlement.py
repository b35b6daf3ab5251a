# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field


class CreateEntitlementRequest(BaseModel):
    """Request body for granting a user's yearly entitlement."""

    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int = Field(ge=2020, le=2050)
    total_days: int = Field(ge=0, le=365)
    carried_forward: int = Field(default=0, ge=0)
    expires_at: date | None = None


class CarryForwardRequest(BaseModel):
    """Request body for rolling a benefit year's balances into the next one."""

    from_year: int = Field(ge=2020, le=2049)


class EntitlementResponse(BaseModel):
    """Balance for one user, leave type and year."""

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int
    total_days: int
    used_days: int
    pending_days: int
    remaining_days: int
    carried_forward: int
    expires_at: date | None
    version: int
    updated_at: datetime


class EntitlementListResponse(BaseModel):
    """A user's entitlements."""

    items: list[EntitlementResponse]
    total: int


class CarryForwardResponse(BaseModel):
    """Outcome of a carry-forward run."""

    from_year: int
    created: int
    skipped: int
