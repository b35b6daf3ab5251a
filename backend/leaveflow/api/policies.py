# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from leaveflow.api.deps import AdminDep, AuthDep, RepoDep, validate_organization_scope
from leaveflow.schemas.policy import CreateLeavePolicyRequest, LeavePolicyListResponse, LeavePolicyResponse
from leaveflow.services import policy as policy_service

router = APIRouter(
    prefix="/organizations/{organization_id}/policies",
    tags=["policies"],
    dependencies=[Depends(validate_organization_scope)],
)


@router.post("", response_model=LeavePolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_policy(
    payload: CreateLeavePolicyRequest,
    repo: RepoDep,
    auth: AdminDep,
) -> LeavePolicyResponse:
    """Create the leave policy for one country (admin only)."""
    return await policy_service.create_leave_policy(repo, auth, payload)


@router.get("", response_model=LeavePolicyListResponse)
async def list_leave_policies(
    repo: RepoDep,
    auth: AuthDep,
) -> LeavePolicyListResponse:
    """List all leave policies for the organization."""
    return await policy_service.list_leave_policies(repo, auth.organization_id)


@router.get("/{country}", response_model=LeavePolicyResponse)
async def get_leave_policy(
    repo: RepoDep,
    auth: AuthDep,
    country: str = Path(min_length=2, max_length=2),
) -> LeavePolicyResponse:
    """Get the leave policy for a country."""
    return await policy_service.get_leave_policy(repo, auth.organization_id, country)
