"""Year-end carry-forward of unused leave.

Runs on Jan 1 (from the worker) or on demand (from the API). For every
entitlement of the closing year it opens the next year's row with the same
allowance plus the carried days, capped by the country policy.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from leaveflow.config import get_settings
from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.models.enums import AuditAction, AuditEntityType
from leaveflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from leaveflow.config import Settings
    from leaveflow.models.policy import LeavePolicy
    from leaveflow.repositories.base import LeaveRepository

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = uuid.UUID(int=0)


@dataclass
class CarryoverRunResult:
    """Result of a carry-forward run."""

    from_year: int
    created: int = 0
    skipped: int = 0
    details: list[dict[str, object]] = field(default_factory=list)


def carryover_expiry_date(year: int, months: int) -> date:
    """Jan 1 of ``year`` plus ``months`` whole months."""
    return date(year + months // 12, months % 12 + 1, 1)


def carried_days(remaining_days: int, policy: LeavePolicy | None) -> int:
    """Unused days that move into the next year; nothing without a policy."""
    if policy is None:
        return 0
    return max(0, min(remaining_days, policy.carryover_max_days))


async def carry_forward(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    from_year: int,
    *,
    actor_id: uuid.UUID = SYSTEM_ACTOR,
    settings: Settings | None = None,
) -> CarryoverRunResult:
    """Open ``from_year + 1`` entitlements for every ``from_year`` entitlement.

    Rows that already exist for the next year are left alone, so the run can
    be repeated safely.
    """
    settings = settings or get_settings()
    to_year = from_year + 1
    result = CarryoverRunResult(from_year=from_year)
    policies: dict[str, LeavePolicy | None] = {}

    for entitlement in await repo.list_entitlements(organization_id, year=from_year):
        if await repo.get_entitlement(entitlement.user_id, entitlement.leave_type_id, to_year) is not None:
            result.skipped += 1
            continue

        user = await repo.get_user_by_id(entitlement.user_id)
        country = ((user.country if user else None) or settings.default_country).upper()
        if country not in policies:
            policies[country] = await repo.get_leave_policy(organization_id, country)
        policy = policies[country]

        carried = carried_days(entitlement.remaining_days, policy)
        next_entitlement = LeaveEntitlement(
            organization_id=organization_id,
            user_id=entitlement.user_id,
            leave_type_id=entitlement.leave_type_id,
            year=to_year,
            total_days=entitlement.total_days,
            carried_forward=carried,
            used_days=0,
            pending_days=0,
            remaining_days=entitlement.total_days + carried,
            expires_at=carryover_expiry_date(to_year, policy.carryover_expiry_months)
            if policy is not None and carried > 0
            else None,
        )
        await repo.add_entitlement(next_entitlement)

        await write_audit_log(
            repo,
            organization_id=organization_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.ENTITLEMENT,
            entity_id=next_entitlement.id,
            action=AuditAction.CARRY_FORWARD,
            before_json=model_to_audit_dict(entitlement),
            after_json=model_to_audit_dict(next_entitlement),
        )

        result.created += 1
        result.details.append(
            {
                "user_id": str(entitlement.user_id),
                "leave_type_id": str(entitlement.leave_type_id),
                "carried_forward": carried,
            }
        )

    await repo.commit()
    logger.info(
        "Carry-forward %d -> %d for organization %s: created=%d skipped=%d",
        from_year,
        to_year,
        organization_id,
        result.created,
        result.skipped,
    )
    return result
