# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from leaveflow.exceptions import NotFoundError
from leaveflow.models.enums import AuditAction, AuditEntityType
from leaveflow.models.policy import LeavePolicy
from leaveflow.schemas.policy import LeavePolicyListResponse, LeavePolicyResponse
from leaveflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from leaveflow.repositories.base import LeaveRepository
    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.policy import CreateLeavePolicyRequest

logger = logging.getLogger(__name__)


def _build_policy_response(policy: LeavePolicy) -> LeavePolicyResponse:
    """Build a LeavePolicyResponse from a DB model."""
    return LeavePolicyResponse(
        id=policy.id,
        organization_id=policy.organization_id,
        country=policy.country,
        annual_leave_days=policy.annual_leave_days,
        sick_leave_days=policy.sick_leave_days,
        maternity_leave_days=policy.maternity_leave_days,
        paternity_leave_days=policy.paternity_leave_days,
        carryover_max_days=policy.carryover_max_days,
        carryover_expiry_months=policy.carryover_expiry_months,
        notice_period_days=policy.notice_period_days,
        created_at=policy.created_at,
    )


async def create_leave_policy(
    repo: LeaveRepository,
    auth: AuthContext,
    payload: CreateLeavePolicyRequest,
) -> LeavePolicyResponse:
    """Create the organization's leave policy for one country.

    A second policy for the same country is rejected with 409.
    """
    policy = LeavePolicy(
        organization_id=auth.organization_id,
        country=payload.country.upper(),
        annual_leave_days=payload.annual_leave_days,
        sick_leave_days=payload.sick_leave_days,
        maternity_leave_days=payload.maternity_leave_days,
        paternity_leave_days=payload.paternity_leave_days,
        carryover_max_days=payload.carryover_max_days,
        carryover_expiry_months=payload.carryover_expiry_months,
        notice_period_days=payload.notice_period_days,
        created_by=auth.user_id,
    )
    await repo.add_leave_policy(policy)

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(policy),
    )

    await repo.commit()
    logger.info("Leave policy for %s created in organization %s", policy.country, auth.organization_id)
    return _build_policy_response(policy)


async def get_leave_policy(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    country: str,
) -> LeavePolicyResponse:
    """Fetch the policy for a country."""
    policy = await repo.get_leave_policy(organization_id, country.upper())
    if policy is None:
        raise NotFoundError(f"No leave policy for country {country.upper()}")
    return _build_policy_response(policy)


async def list_leave_policies(repo: LeaveRepository, organization_id: uuid.UUID) -> LeavePolicyListResponse:
    """List the organization's leave policies by country."""
    policies = await repo.list_leave_policies(organization_id)
    return LeavePolicyListResponse(
        items=[_build_policy_response(p) for p in policies],
        total=len(policies),
    )
