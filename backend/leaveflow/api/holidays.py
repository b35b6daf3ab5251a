# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from leaveflow.api.deps import AdminDep, AuthDep, RepoDep, validate_organization_scope
from leaveflow.schemas.holiday import CreateHolidayRequest, HolidayListResponse, HolidayResponse
from leaveflow.services import holiday as holiday_service

holidays_router = APIRouter(
    prefix="/organizations/{organization_id}/holidays",
    tags=["holidays"],
    dependencies=[Depends(validate_organization_scope)],
)


@holidays_router.post(
    "",
    response_model=HolidayResponse,
    status_code=201,
)
async def create_holiday(
    organization_id: uuid.UUID,
    payload: CreateHolidayRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> HolidayResponse:
    """Create an organization holiday (admin only)."""
    return await holiday_service.create_holiday(repo, auth, payload)


@holidays_router.get(
    "",
    response_model=HolidayListResponse,
)
async def list_holidays(
    organization_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
    country: str | None = Query(default=None, min_length=2, max_length=2),
    year: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List organization holidays with optional country and year filters."""
    return await holiday_service.list_holidays(repo, organization_id, country, year, offset, limit)


@holidays_router.delete(
    "/{holiday_id}",
    status_code=204,
)
async def delete_holiday(
    organization_id: uuid.UUID,
    holiday_id: uuid.UUID,
    repo: RepoDep,
    auth: AdminDep,
) -> None:
    """Delete an organization holiday (admin only)."""
    await holiday_service.delete_holiday(repo, auth, holiday_id)
