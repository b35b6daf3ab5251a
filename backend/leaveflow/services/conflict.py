# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from leaveflow.repositories.base import RepositoryError

if TYPE_CHECKING:
    from leaveflow.repositories.base import LeaveRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of an overlap check.

    ``unavailable`` is set when existing requests could not be read; the
    result then reports a conflict without naming any request.
    """

    conflict: bool
    unavailable: bool = False
    conflicting_ids: tuple[uuid.UUID, ...] = field(default_factory=tuple)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive date ranges overlap when each starts before the other ends."""
    return start_a <= end_b and end_a >= start_b


async def detect_conflict(
    repo: LeaveRepository,
    user_id: uuid.UUID,
    start: date,
    end: date,
) -> ConflictResult:
    """Check ``[start, end]`` against the user's PENDING and APPROVED requests.

    Fails closed: if the lookup raises, the range is reported as conflicting.
    """
    try:
        existing = await repo.find_overlapping_requests(user_id, start, end)
    except (RepositoryError, TimeoutError):
        logger.exception("Conflict check failed for user %s; treating %s..%s as unavailable", user_id, start, end)
        return ConflictResult(conflict=True, unavailable=True)

    conflicting = tuple(r.id for r in existing if ranges_overlap(r.start_date, r.end_date, start, end))
    return ConflictResult(conflict=bool(conflicting), conflicting_ids=conflicting)


async def has_conflict(repo: LeaveRepository, user_id: uuid.UUID, start: date, end: date) -> bool:
    result = await detect_conflict(repo, user_id, start, end)
    return result.conflict
