"""Entitlement ledger: per user/leave-type/year balances.

Every mutation is a single conditional update through
``LeaveRepository.update_balance``; there is no read-modify-write across
calls. A rejected update is diagnosed afterwards to pick the error kind.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from leaveflow.exceptions import InsufficientBalanceError, LedgerError, NotFoundError
from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.models.enums import AuditAction, AuditEntityType
from leaveflow.schemas.entitlement import EntitlementListResponse, EntitlementResponse
from leaveflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from leaveflow.repositories.base import LeaveRepository
    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.entitlement import CreateEntitlementRequest

logger = logging.getLogger(__name__)


def build_entitlement_response(entitlement: LeaveEntitlement) -> EntitlementResponse:
    """Map an entitlement model to its response schema."""
    return EntitlementResponse(
        id=entitlement.id,
        user_id=entitlement.user_id,
        leave_type_id=entitlement.leave_type_id,
        year=entitlement.year,
        total_days=entitlement.total_days,
        used_days=entitlement.used_days,
        pending_days=entitlement.pending_days,
        remaining_days=entitlement.remaining_days,
        carried_forward=entitlement.carried_forward,
        expires_at=entitlement.expires_at,
        version=entitlement.version,
        updated_at=entitlement.updated_at,
    )


def _check_days(days: int) -> None:
    if days <= 0:
        msg = f"Ledger amounts must be positive, got {days}"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_remaining(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> LeaveEntitlement:
    """Return the entitlement row. Raises ``NotFoundError`` if none exists."""
    entitlement = await repo.get_entitlement(user_id, leave_type_id, year)
    if entitlement is None:
        raise NotFoundError(f"No leave entitlement for this leave type in {year}")
    return entitlement


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def reserve(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: int,
) -> LeaveEntitlement:
    """Move ``days`` from remaining into pending.

    Raises ``InsufficientBalanceError`` when fewer than ``days`` remain.
    """
    _check_days(days)
    entitlement = await repo.update_balance(
        user_id, leave_type_id, year, pending_delta=days, used_delta=0, min_remaining=days
    )
    if entitlement is None:
        current = await get_remaining(repo, user_id, leave_type_id, year)
        raise InsufficientBalanceError(remaining=current.remaining_days, requested=days)

    logger.debug("Reserved %d day(s) for user %s (version %d)", days, user_id, entitlement.version)
    return entitlement


async def commit(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: int,
) -> LeaveEntitlement:
    """Move ``days`` from pending into used. Remaining is unchanged."""
    _check_days(days)
    entitlement = await repo.update_balance(
        user_id, leave_type_id, year, pending_delta=-days, used_delta=days, min_pending=days
    )
    if entitlement is None:
        current = await get_remaining(repo, user_id, leave_type_id, year)
        raise LedgerError(f"Cannot commit {days} day(s): only {current.pending_days} pending")

    logger.debug("Committed %d day(s) for user %s (version %d)", days, user_id, entitlement.version)
    return entitlement


async def release(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: int,
) -> LeaveEntitlement:
    """Undo a reservation: move ``days`` from pending back into remaining."""
    _check_days(days)
    entitlement = await repo.update_balance(
        user_id, leave_type_id, year, pending_delta=-days, used_delta=0, min_pending=days
    )
    if entitlement is None:
        current = await get_remaining(repo, user_id, leave_type_id, year)
        raise LedgerError(f"Cannot release {days} day(s): only {current.pending_days} pending")

    logger.debug("Released %d day(s) for user %s (version %d)", days, user_id, entitlement.version)
    return entitlement


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


async def create_entitlement(
    repo: LeaveRepository,
    auth: AuthContext,
    payload: CreateEntitlementRequest,
) -> EntitlementResponse:
    """Grant a user's entitlement for one leave type and benefit year."""
    user = await repo.get_user_by_id(payload.user_id)
    if user is None or user.organization_id != auth.organization_id:
        raise NotFoundError("User not found in this organization")

    leave_type = await repo.get_leave_type(auth.organization_id, payload.leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")

    entitlement = LeaveEntitlement(
        organization_id=auth.organization_id,
        user_id=payload.user_id,
        leave_type_id=payload.leave_type_id,
        year=payload.year,
        total_days=payload.total_days,
        carried_forward=payload.carried_forward,
        used_days=0,
        pending_days=0,
        remaining_days=payload.total_days + payload.carried_forward,
        expires_at=payload.expires_at,
    )
    await repo.add_entitlement(entitlement)

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.ENTITLEMENT,
        entity_id=entitlement.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(entitlement),
    )

    await repo.commit()
    logger.info(
        "Entitlement created: user=%s leave_type=%s year=%d total=%d",
        entitlement.user_id,
        entitlement.leave_type_id,
        entitlement.year,
        entitlement.total_days,
    )
    return build_entitlement_response(entitlement)


async def list_entitlements(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    user_id: uuid.UUID | None = None,
    year: int | None = None,
) -> EntitlementListResponse:
    """List entitlements, optionally for one user and/or year."""
    entitlements = await repo.list_entitlements(organization_id, user_id=user_id, year=year)
    return EntitlementListResponse(
        items=[build_entitlement_response(e) for e in entitlements],
        total=len(entitlements),
    )
