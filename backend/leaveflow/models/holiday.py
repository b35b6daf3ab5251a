# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UUIDBase


class Holiday(UUIDBase, TimestampMixin, table=True):
    """An organization holiday for one country, optionally repeating every year."""

    __tablename__ = "holiday"
    __table_args__ = (
        sa.UniqueConstraint("organization_id", "country", "date", name="uq_holiday_org_country_date"),
    )

    organization_id: uuid.UUID = Field(index=True)
    country: str = Field(max_length=2)
    date: datetime.date
    name: str = Field(max_length=200)
    is_recurring: bool = False
    created_by: uuid.UUID
