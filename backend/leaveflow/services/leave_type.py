# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from leaveflow.exceptions import DuplicateError, NotFoundError, ResourceInUseError
from leaveflow.models.enums import AuditAction, AuditEntityType
from leaveflow.models.leave_type import LeaveType
from leaveflow.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse
from leaveflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from leaveflow.repositories.base import LeaveRepository
    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.leave_type import CreateLeaveTypeRequest, UpdateLeaveTypeRequest

logger = logging.getLogger(__name__)

_NULLABLE_FIELDS = frozenset({"description", "max_consecutive_days", "max_days_per_year"})


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    """Build a LeaveTypeResponse from a DB model."""
    return LeaveTypeResponse(
        id=leave_type.id,
        organization_id=leave_type.organization_id,
        name=leave_type.name,
        description=leave_type.description,
        is_paid=leave_type.is_paid,
        requires_approval=leave_type.requires_approval,
        max_consecutive_days=leave_type.max_consecutive_days,
        max_days_per_year=leave_type.max_days_per_year,
        created_by=leave_type.created_by,
        created_at=leave_type.created_at,
    )


async def _get_leave_type_or_404(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveType:
    leave_type = await repo.get_leave_type(organization_id, leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def _ensure_name_available(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    name: str,
    exclude_id: uuid.UUID | None = None,
) -> None:
    """Leave type names are unique per organization, ignoring case."""
    for other in await repo.list_leave_types(organization_id):
        if other.id != exclude_id and other.name.casefold() == name.casefold():
            raise DuplicateError("Leave type with this name already exists in the organization")


async def create_leave_type(
    repo: LeaveRepository,
    auth: AuthContext,
    payload: CreateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Create a leave type for the organization."""
    name = payload.name.strip()
    await _ensure_name_available(repo, auth.organization_id, name)

    leave_type = LeaveType(
        organization_id=auth.organization_id,
        name=name,
        description=payload.description,
        is_paid=payload.is_paid,
        requires_approval=payload.requires_approval,
        max_consecutive_days=payload.max_consecutive_days,
        max_days_per_year=payload.max_days_per_year,
        created_by=auth.user_id,
    )
    await repo.add_leave_type(leave_type)

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_TYPE,
        entity_id=leave_type.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave_type),
    )

    await repo.commit()
    logger.info("Leave type %r created in organization %s", leave_type.name, auth.organization_id)
    return _build_leave_type_response(leave_type)


async def get_leave_type(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveTypeResponse:
    """Fetch a single leave type."""
    leave_type = await _get_leave_type_or_404(repo, organization_id, leave_type_id)
    return _build_leave_type_response(leave_type)


async def list_leave_types(repo: LeaveRepository, organization_id: uuid.UUID) -> LeaveTypeListResponse:
    """List the organization's leave types by name."""
    leave_types = await repo.list_leave_types(organization_id)
    return LeaveTypeListResponse(
        items=[_build_leave_type_response(t) for t in leave_types],
        total=len(leave_types),
    )


async def update_leave_type(
    repo: LeaveRepository,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Update a leave type. Refused once any entitlement or request references it."""
    leave_type = await _get_leave_type_or_404(repo, auth.organization_id, leave_type_id)

    if await repo.leave_type_in_use(leave_type.id):
        raise ResourceInUseError("Leave type is referenced by entitlements or requests and cannot be changed")

    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in _NULLABLE_FIELDS
    }
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        await _ensure_name_available(repo, auth.organization_id, changes["name"], exclude_id=leave_type.id)

    before_dict = model_to_audit_dict(leave_type)
    for key, value in changes.items():
        setattr(leave_type, key, value)
    await repo.save_leave_type(leave_type)

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_TYPE,
        entity_id=leave_type.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave_type),
    )

    await repo.commit()
    return _build_leave_type_response(leave_type)


async def delete_leave_type(
    repo: LeaveRepository,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
) -> None:
    """Delete a leave type nothing references yet."""
    leave_type = await _get_leave_type_or_404(repo, auth.organization_id, leave_type_id)

    if await repo.leave_type_in_use(leave_type.id):
        raise ResourceInUseError("Leave type is referenced by entitlements or requests and cannot be deleted")

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_TYPE,
        entity_id=leave_type.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(leave_type),
    )

    await repo.delete_leave_type(leave_type)
    await repo.commit()
    logger.info("Leave type %r deleted from organization %s", leave_type.name, auth.organization_id)
