# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class CreateHolidayRequest(BaseModel):
    """Request body for creating an organization holiday."""

    date: date
    name: str = Field(min_length=1, max_length=200)
    country: str = Field(min_length=2, max_length=2, pattern=r"^[A-Za-z]{2}$")
    is_recurring: bool = False


class HolidayResponse(BaseModel):
    """Response schema for an organization holiday."""

    id: uuid.UUID
    organization_id: uuid.UUID
    country: str
    date: date
    name: str
    is_recurring: bool


class HolidayListResponse(BaseModel):
    """Paginated list of organization holidays."""

    items: list[HolidayResponse]
    total: int
