"""Worker process for the year-end carry-forward job.

Runs an asyncio loop that wakes at every local midnight; on Jan 1 it carries
every organization's unused leave into the new year.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import distinct, select
from sqlmodel import col

from leaveflow.config import get_settings
from leaveflow.db import get_session_factory
from leaveflow.models.entitlement import LeaveEntitlement
from leaveflow.repositories.sql import SqlLeaveRepository
from leaveflow.services.carryover import carry_forward
from leaveflow.services.users import get_user_directory

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

def seconds_until_next_day(now: datetime) -> float:
    """Seconds from ``now`` to the following midnight, so no calendar day is skipped."""
    next_midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return (next_midnight - now).total_seconds()


async def _organizations_with_entitlements(session: AsyncSession, year: int) -> list[uuid.UUID]:
    result = await session.execute(
        select(distinct(col(LeaveEntitlement.organization_id))).where(col(LeaveEntitlement.year) == year)
    )
    return list(result.scalars().all())


async def run_year_end_carryover(session_factory: async_sessionmaker[AsyncSession], today: date) -> int:
    """Carry ``today.year - 1`` into ``today.year`` on Jan 1. Returns organizations processed."""
    if (today.month, today.day) != (1, 1):
        return 0

    from_year = today.year - 1
    async with session_factory() as session:
        organization_ids = await _organizations_with_entitlements(session, from_year)

    processed = 0
    for organization_id in organization_ids:
        try:
            async with session_factory() as session:
                repo = SqlLeaveRepository(session, get_user_directory())
                await carry_forward(repo, organization_id, from_year)
            processed += 1
        except Exception:
            logger.exception("Carry-forward failed for organization %s", organization_id)
    return processed


async def run_carryover_loop() -> None:
    """Main worker loop."""
    logger.info("Carryover worker started")
    session_factory = get_session_factory()

    while True:
        today = date.today()
        try:
            processed = await run_year_end_carryover(session_factory, today)
            if processed:
                logger.info("Year-end carry-forward for %s: organizations=%d", today, processed)
        except Exception:
            logger.exception("Carryover run failed for %s", today)

        await asyncio.sleep(seconds_until_next_day(datetime.now()))


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_carryover_loop())


if __name__ == "__main__":
    main()
