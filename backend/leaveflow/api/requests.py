# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from leaveflow.api.deps import AuthDep, PublisherDep, RepoDep, validate_organization_scope
from leaveflow.models.enums import LeaveStatus
from leaveflow.schemas.request import (
    DecisionPayload,
    RequestListResponse,
    RequestResponse,
    SubmitRequestPayload,
)
from leaveflow.services import request as request_service

requests_router = APIRouter(
    prefix="/organizations/{organization_id}/requests",
    tags=["requests"],
    dependencies=[Depends(validate_organization_scope)],
)


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitRequestPayload,
    repo: RepoDep,
    auth: AuthDep,
    publisher: PublisherDep,
) -> RequestResponse:
    """Submit a leave request for the calling user."""
    command = request_service.SubmitCommand(
        organization_id=auth.organization_id,
        user_id=auth.user_id,
        leave_type_id=payload.leave_type_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        approver_id=payload.approver_id,
    )
    result = await request_service.submit_request(repo, command)
    await publisher.publish(result.events)
    return result.request


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    repo: RepoDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    leave_type_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List leave requests with optional filters."""
    return await request_service.list_requests(
        repo, auth.organization_id, status_filter, leave_type_id, user_id, offset, limit
    )


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(repo, auth.organization_id, request_id)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
    publisher: PublisherDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request (assigned approver or admin)."""
    command = request_service.ApproveCommand(
        organization_id=auth.organization_id,
        request_id=request_id,
        actor_id=auth.user_id,
        is_admin=auth.is_admin,
        comments=payload.comments if payload else None,
    )
    result = await request_service.approve_request(repo, command)
    await publisher.publish(result.events)
    return result.request


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
    publisher: PublisherDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request (assigned approver or admin)."""
    command = request_service.RejectCommand(
        organization_id=auth.organization_id,
        request_id=request_id,
        actor_id=auth.user_id,
        is_admin=auth.is_admin,
        comments=payload.comments if payload else None,
    )
    result = await request_service.reject_request(repo, command)
    await publisher.publish(result.events)
    return result.request


@requests_router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    repo: RepoDep,
    auth: AuthDep,
    publisher: PublisherDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Cancel a pending request (requester or admin)."""
    command = request_service.CancelCommand(
        organization_id=auth.organization_id,
        request_id=request_id,
        actor_id=auth.user_id,
        is_admin=auth.is_admin,
        reason=payload.comments if payload else None,
    )
    result = await request_service.cancel_request(repo, command)
    await publisher.publish(result.events)
    return result.request
