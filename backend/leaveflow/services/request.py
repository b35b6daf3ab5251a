# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from leaveflow.config import get_settings
from leaveflow.exceptions import (
    ConflictError,
    InvalidRangeError,
    InvalidStateTransitionError,
    NotFoundError,
    PolicyViolationError,
    UnauthorizedTransitionError,
)
from leaveflow.models.base import now_utc
from leaveflow.models.enums import AuditAction, AuditEntityType, LeaveEventType, LeaveStatus, ViolationKind
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.request import RequestListResponse, RequestResponse
from leaveflow.services import ledger
from leaveflow.services.audit import model_to_audit_dict, write_audit_log
from leaveflow.services.conflict import detect_conflict
from leaveflow.services.events import LeaveEvent
from leaveflow.services.holiday import get_holiday_dates
from leaveflow.services.validation import validate_submission
from leaveflow.services.working_days import count_working_days

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from leaveflow.config import Settings
    from leaveflow.models.leave_type import LeaveType
    from leaveflow.repositories.base import LeaveRepository
    from leaveflow.services.users import UserInfo

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Commands and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubmitCommand:
    organization_id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = None
    approver_id: uuid.UUID | None = None


@dataclass(frozen=True)
class ApproveCommand:
    organization_id: uuid.UUID
    request_id: uuid.UUID
    actor_id: uuid.UUID
    is_admin: bool = False
    comments: str | None = None


@dataclass(frozen=True)
class RejectCommand:
    organization_id: uuid.UUID
    request_id: uuid.UUID
    actor_id: uuid.UUID
    is_admin: bool = False
    comments: str | None = None


@dataclass(frozen=True)
class CancelCommand:
    organization_id: uuid.UUID
    request_id: uuid.UUID
    actor_id: uuid.UUID
    is_admin: bool = False
    reason: str | None = None


@dataclass(frozen=True)
class TransitionResult:
    """The request after a transition, plus the events it produced (in order)."""

    request: RequestResponse
    events: list[LeaveEvent] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        organization_id=request.organization_id,
        user_id=request.user_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        days_requested=request.days_requested,
        entitlement_year=request.entitlement_year,
        status=LeaveStatus(request.status),
        reason=request.reason,
        approver_id=request.approver_id,
        approver_comments=request.approver_comments,
        approved_at=request.approved_at,
        decided_by=request.decided_by,
        decided_at=request.decided_at,
        created_at=request.created_at,
    )


def _build_event(
    event_type: LeaveEventType,
    request: LeaveRequest,
    actor_id: uuid.UUID,
    occurred_at: datetime,
    payload: dict[str, Any],
) -> LeaveEvent:
    return LeaveEvent(
        type=event_type,
        organization_id=request.organization_id,
        request_id=request.id,
        user_id=request.user_id,
        actor_id=actor_id,
        occurred_at=occurred_at,
        payload=payload,
    )


def _user_payload(user: UserInfo | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": str(user.id), "name": user.name, "email": user.email, "department": user.department}


async def _decision_payload(
    repo: LeaveRepository,
    leave_request: LeaveRequest,
    actor_id: uuid.UUID,
    comments: str | None,
) -> dict[str, Any]:
    """Payload shared by the approved and rejected events: who asked and who decided."""
    return {
        "days_requested": leave_request.days_requested,
        "comments": comments,
        "user": _user_payload(await repo.get_user_by_id(leave_request.user_id)),
        "approver": _user_payload(await repo.get_user_by_id(actor_id)),
    }



async def _get_request_or_404(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
) -> LeaveRequest:
    """Fetch a request by ID scoped to the organization. Raises 404 if not found."""
    leave_request = await repo.get_request(organization_id, request_id)
    if leave_request is None:
        raise NotFoundError("Leave request not found")
    return leave_request


async def _get_user_or_404(repo: LeaveRepository, organization_id: uuid.UUID, user_id: uuid.UUID) -> UserInfo:
    user = await repo.get_user_by_id(user_id)
    if user is None or user.organization_id != organization_id:
        raise NotFoundError("User not found in this organization")
    return user


async def _get_leave_type_or_404(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveType:
    leave_type = await repo.get_leave_type(organization_id, leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def _resolve_approver(
    repo: LeaveRepository,
    user: UserInfo,
    approver_id: uuid.UUID | None,
    *,
    required: bool,
) -> uuid.UUID | None:
    """Explicit approver first, then the user's manager. Nobody approves their own leave."""
    if approver_id is not None:
        if approver_id == user.id:
            raise PolicyViolationError(
                ViolationKind.SELF_APPROVAL,
                "A user cannot be the approver of their own request",
            )
        await _get_user_or_404(repo, user.organization_id, approver_id)
        return approver_id
    if user.manager_id is not None and user.manager_id != user.id:
        return user.manager_id
    if required:
        raise PolicyViolationError(
            ViolationKind.APPROVER_REQUIRED,
            "This leave type requires approval but no approver was given and the user has no manager",
        )
    return None


async def _release_after_failure(repo: LeaveRepository, leave_request: LeaveRequest) -> None:
    """Compensate a reservation whose request could not be stored."""
    logger.warning(
        "Storing leave request for user %s failed; releasing %d reserved day(s)",
        leave_request.user_id,
        leave_request.days_requested,
    )
    try:
        await ledger.release(
            repo,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.entitlement_year,
            leave_request.days_requested,
        )
    except Exception:
        logger.exception("Compensating release failed for user %s", leave_request.user_id)


def _ensure_pending(leave_request: LeaveRequest, action: str) -> None:
    status = LeaveStatus(leave_request.status)
    if status != LeaveStatus.PENDING:
        raise InvalidStateTransitionError(status, action)


def _authorize_decision(leave_request: LeaveRequest, actor_id: uuid.UUID, is_admin: bool) -> None:
    """Only the assigned approver or an administrator may approve or reject."""
    if is_admin:
        return
    if leave_request.user_id == actor_id:
        raise UnauthorizedTransitionError("Requesters cannot decide their own leave request")
    if leave_request.approver_id is None or leave_request.approver_id != actor_id:
        raise UnauthorizedTransitionError("Only the assigned approver or an administrator can decide this request")


def _authorize_cancel(leave_request: LeaveRequest, actor_id: uuid.UUID, is_admin: bool) -> None:
    """The requester can cancel their own request; an administrator can cancel any."""
    if not is_admin and leave_request.user_id != actor_id:
        raise UnauthorizedTransitionError("Only the requester or an administrator can cancel this request")


async def _commit_approval(
    repo: LeaveRepository,
    leave_request: LeaveRequest,
    *,
    actor_id: uuid.UUID,
    comments: str | None,
    now: datetime,
) -> None:
    """Move the reserved days to used and mark the request APPROVED."""
    await ledger.commit(
        repo,
        leave_request.user_id,
        leave_request.leave_type_id,
        leave_request.entitlement_year,
        leave_request.days_requested,
    )
    leave_request.status = LeaveStatus.APPROVED
    leave_request.approved_at = now
    leave_request.approver_comments = comments
    leave_request.decided_by = actor_id
    leave_request.decided_at = now


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def submit_request(
    repo: LeaveRepository,
    command: SubmitCommand,
    *,
    today: date | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> TransitionResult:
    """Submit a leave request, reserving its working days.

    Flow (under the user's lock):
    1. Load the user, the leave type and the country policy
    2. Count working days in the range
    3. Run the submission rules
    4. Reject a range with no working days
    5. Check for overlapping PENDING/APPROVED requests (fails closed)
    6. Resolve the approver
    7. Reserve the days
    8. Store the request as PENDING (release the reservation if this fails)
    9. Audit and commit
    """
    settings = settings or get_settings()
    today = today or date.today()
    now = now or now_utc()

    try:
        async with repo.user_lock(command.user_id):
            result = await _submit_locked(repo, command, today, now, settings)
            await repo.commit()
    except Exception:
        await repo.rollback()
        raise

    logger.info(
        "Leave request %s submitted by user %s: %s..%s, %d day(s), status %s",
        result.request.id,
        command.user_id,
        command.start_date,
        command.end_date,
        result.request.days_requested,
        result.request.status,
    )
    return result


async def _submit_locked(
    repo: LeaveRepository,
    command: SubmitCommand,
    today: date,
    now: datetime,
    settings: Settings,
) -> TransitionResult:
    org_id = command.organization_id

    # 1. Load collaborators.
    user = await _get_user_or_404(repo, org_id, command.user_id)
    leave_type = await _get_leave_type_or_404(repo, org_id, command.leave_type_id)
    country = (user.country or settings.default_country).upper()
    policy = await repo.get_leave_policy(org_id, country)

    # 2. Working days.
    if command.start_date > command.end_date:
        raise InvalidRangeError(f"start date {command.start_date} is after end date {command.end_date}")
    holidays = await get_holiday_dates(repo, org_id, country, command.start_date, command.end_date)
    days_requested = count_working_days(command.start_date, command.end_date, holidays, settings.weekend_days)

    # 3. Submission rules.
    year = command.start_date.year
    entitlement = await repo.get_entitlement(command.user_id, command.leave_type_id, year)
    booked_days = entitlement.used_days + entitlement.pending_days if entitlement is not None else 0
    validation = validate_submission(
        leave_type,
        policy,
        command.start_date,
        command.end_date,
        days_requested,
        today,
        booked_days=booked_days,
        enforce_notice_period=settings.enforce_notice_period,
    )
    if validation.violation is not None:
        raise PolicyViolationError(validation.violation.kind, validation.violation.message)

    # 4. Whole working days only.
    if days_requested == 0:
        raise InvalidRangeError(f"{command.start_date}..{command.end_date} contains no working days")

    # 5. Overlaps.
    conflict = await detect_conflict(repo, command.user_id, command.start_date, command.end_date)
    if conflict.unavailable:
        raise ConflictError("Could not verify existing leave requests; try again later", retryable=True)
    if conflict.conflict:
        raise ConflictError("Leave request overlaps an existing pending or approved request")

    # 6. Approver.
    approver_id = await _resolve_approver(repo, user, command.approver_id, required=validation.requires_approver)

    # 7. Reserve.
    await ledger.reserve(repo, command.user_id, command.leave_type_id, year, days_requested)

    # 8. Store.
    leave_request = LeaveRequest(
        organization_id=org_id,
        user_id=command.user_id,
        leave_type_id=command.leave_type_id,
        start_date=command.start_date,
        end_date=command.end_date,
        days_requested=days_requested,
        entitlement_year=year,
        status=LeaveStatus.PENDING,
        reason=command.reason,
        approver_id=approver_id,
    )
    try:
        await repo.add_request(leave_request)
    except Exception:
        await _release_after_failure(repo, leave_request)
        raise

    await write_audit_log(
        repo,
        organization_id=org_id,
        actor_id=command.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(leave_request),
    )

    events = [
        _build_event(
            LeaveEventType.SUBMITTED,
            leave_request,
            command.user_id,
            now,
            {
                "leave_type_id": str(leave_type.id),
                "leave_type_name": leave_type.name,
                "start_date": leave_request.start_date.isoformat(),
                "end_date": leave_request.end_date.isoformat(),
                "days_requested": days_requested,
                "reason": leave_request.reason,
                "approver_id": str(approver_id) if approver_id else None,
                "user": _user_payload(user),
            },
        )
    ]

    return TransitionResult(request=_build_request_response(leave_request), events=events)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def _settle(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
    *,
    action: str,
    authorize: Callable[[LeaveRequest, uuid.UUID, bool], None],
    actor_id: uuid.UUID,
    is_admin: bool,
    apply: Callable[[LeaveRequest], Awaitable[None]],
    audit_action: AuditAction,
) -> LeaveRequest:
    """Shared flow for approve, reject and cancel.

    1. Fetch the request and authorize the actor.
    2. Lock the requester's balances and re-read the request.
    3. Require PENDING.
    4. Apply the ledger move and status change.
    5. Audit and commit.
    """
    try:
        leave_request = await _get_request_or_404(repo, organization_id, request_id)
        authorize(leave_request, actor_id, is_admin)

        async with repo.user_lock(leave_request.user_id):
            leave_request = await _get_request_or_404(repo, organization_id, request_id)
            _ensure_pending(leave_request, action)

            before_dict = model_to_audit_dict(leave_request)
            await apply(leave_request)
            await repo.save_request(leave_request)

            await write_audit_log(
                repo,
                organization_id=organization_id,
                actor_id=actor_id,
                entity_type=AuditEntityType.LEAVE_REQUEST,
                entity_id=leave_request.id,
                action=audit_action,
                before_json=before_dict,
                after_json=model_to_audit_dict(leave_request),
            )
            await repo.commit()
    except Exception:
        await repo.rollback()
        raise
    return leave_request


async def approve_request(
    repo: LeaveRepository,
    command: ApproveCommand,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Approve a PENDING request: its reserved days become used."""
    now = now or now_utc()

    async def apply(leave_request: LeaveRequest) -> None:
        await _commit_approval(repo, leave_request, actor_id=command.actor_id, comments=command.comments, now=now)

    leave_request = await _settle(
        repo,
        command.organization_id,
        command.request_id,
        action="approve",
        authorize=_authorize_decision,
        actor_id=command.actor_id,
        is_admin=command.is_admin,
        apply=apply,
        audit_action=AuditAction.APPROVE,
    )
    logger.info("Leave request %s approved by %s", leave_request.id, command.actor_id)

    event = _build_event(
        LeaveEventType.APPROVED,
        leave_request,
        command.actor_id,
        now,
        await _decision_payload(repo, leave_request, command.actor_id, command.comments),
    )
    return TransitionResult(request=_build_request_response(leave_request), events=[event])


async def reject_request(
    repo: LeaveRepository,
    command: RejectCommand,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Reject a PENDING request and release its reserved days."""
    now = now or now_utc()

    async def apply(leave_request: LeaveRequest) -> None:
        await ledger.release(
            repo,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.entitlement_year,
            leave_request.days_requested,
        )
        leave_request.status = LeaveStatus.REJECTED
        leave_request.approver_comments = command.comments
        leave_request.decided_by = command.actor_id
        leave_request.decided_at = now

    leave_request = await _settle(
        repo,
        command.organization_id,
        command.request_id,
        action="reject",
        authorize=_authorize_decision,
        actor_id=command.actor_id,
        is_admin=command.is_admin,
        apply=apply,
        audit_action=AuditAction.REJECT,
    )
    logger.info("Leave request %s rejected by %s", leave_request.id, command.actor_id)

    event = _build_event(
        LeaveEventType.REJECTED,
        leave_request,
        command.actor_id,
        now,
        await _decision_payload(repo, leave_request, command.actor_id, command.comments),
    )
    return TransitionResult(request=_build_request_response(leave_request), events=[event])


async def cancel_request(
    repo: LeaveRepository,
    command: CancelCommand,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Cancel a PENDING request and release its reserved days."""
    now = now or now_utc()

    async def apply(leave_request: LeaveRequest) -> None:
        await ledger.release(
            repo,
            leave_request.user_id,
            leave_request.leave_type_id,
            leave_request.entitlement_year,
            leave_request.days_requested,
        )
        leave_request.status = LeaveStatus.CANCELLED
        leave_request.decided_by = command.actor_id
        leave_request.decided_at = now

    leave_request = await _settle(
        repo,
        command.organization_id,
        command.request_id,
        action="cancel",
        authorize=_authorize_cancel,
        actor_id=command.actor_id,
        is_admin=command.is_admin,
        apply=apply,
        audit_action=AuditAction.CANCEL,
    )
    logger.info("Leave request %s cancelled by %s", leave_request.id, command.actor_id)

    event = _build_event(
        LeaveEventType.CANCELLED,
        leave_request,
        command.actor_id,
        now,
        {"cancelled_by": str(command.actor_id), "reason": command.reason},
    )
    return TransitionResult(request=_build_request_response(leave_request), events=[event])


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_request(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request by ID."""
    leave_request = await _get_request_or_404(repo, organization_id, request_id)
    return _build_request_response(leave_request)


async def list_requests(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    status_filter: LeaveStatus | None = None,
    leave_type_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, newest first."""
    requests, total = await repo.list_requests(
        organization_id,
        user_id=user_id,
        leave_type_id=leave_type_id,
        status=status_filter,
        offset=offset,
        limit=limit,
    )
    return RequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )
