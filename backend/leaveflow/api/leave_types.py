# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from leaveflow.api.deps import AdminDep, AuthDep, RepoDep, validate_organization_scope
from leaveflow.schemas.leave_type import (
    CreateLeaveTypeRequest,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    UpdateLeaveTypeRequest,
)
from leaveflow.services import leave_type as leave_type_service

leave_types_router = APIRouter(
    prefix="/organizations/{organization_id}/leave-types",
    tags=["leave-types"],
    dependencies=[Depends(validate_organization_scope)],
)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypeRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Create a leave type (admin only)."""
    return await leave_type_service.create_leave_type(repo, auth, payload)


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    repo: RepoDep,
    auth: AuthDep,
) -> LeaveTypeListResponse:
    """List the organization's leave types."""
    return await leave_type_service.list_leave_types(repo, auth.organization_id)


@leave_types_router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
async def get_leave_type(
    leave_type_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Get a single leave type."""
    return await leave_type_service.get_leave_type(repo, auth.organization_id, leave_type_id)


@leave_types_router.patch("/{leave_type_id}", response_model=LeaveTypeResponse)
async def update_leave_type(
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Update a leave type that nothing references yet (admin only)."""
    return await leave_type_service.update_leave_type(repo, auth, leave_type_id, payload)


@leave_types_router.delete("/{leave_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave_type(
    leave_type_id: uuid.UUID,
    repo: RepoDep,
    auth: AdminDep,
) -> None:
    """Delete a leave type that nothing references yet (admin only)."""
    await leave_type_service.delete_leave_type(repo, auth, leave_type_id)
