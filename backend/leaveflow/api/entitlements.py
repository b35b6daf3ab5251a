# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from leaveflow.api.deps import AdminDep, AuthDep, RepoDep, validate_organization_scope
from leaveflow.exceptions import AppError
from leaveflow.schemas.entitlement import (
    CarryForwardRequest,
    CarryForwardResponse,
    CreateEntitlementRequest,
    EntitlementListResponse,
    EntitlementResponse,
)
from leaveflow.services import carryover as carryover_service
from leaveflow.services import ledger as ledger_service

entitlements_router = APIRouter(
    prefix="/organizations/{organization_id}/entitlements",
    tags=["entitlements"],
    dependencies=[Depends(validate_organization_scope)],
)


@entitlements_router.post("", response_model=EntitlementResponse, status_code=status.HTTP_201_CREATED)
async def create_entitlement(
    payload: CreateEntitlementRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> EntitlementResponse:
    """Grant a user's entitlement for a leave type and year (admin only)."""
    return await ledger_service.create_entitlement(repo, auth, payload)


@entitlements_router.get("", response_model=EntitlementListResponse)
async def list_entitlements(
    repo: RepoDep,
    auth: AuthDep,
    user_id: uuid.UUID | None = Query(default=None),
    year: int | None = Query(default=None),
) -> EntitlementListResponse:
    """List entitlements. Employees only see their own."""
    if not auth.is_admin:
        if user_id is not None and user_id != auth.user_id:
            raise AppError("Not authorized to view other users' entitlements", status_code=status.HTTP_403_FORBIDDEN)
        user_id = auth.user_id
    return await ledger_service.list_entitlements(repo, auth.organization_id, user_id=user_id, year=year)


@entitlements_router.post("/carry-forward", response_model=CarryForwardResponse)
async def carry_forward(
    payload: CarryForwardRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> CarryForwardResponse:
    """Open next year's entitlements with carried-over days (admin only)."""
    result = await carryover_service.carry_forward(repo, auth.organization_id, payload.from_year, actor_id=auth.user_id)
    return CarryForwardResponse(from_year=result.from_year, created=result.created, skipped=result.skipped)
