from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from leaveflow.exceptions import NotFoundError
from leaveflow.models.enums import AuditAction, AuditEntityType
from leaveflow.models.holiday import Holiday
from leaveflow.schemas.holiday import HolidayListResponse, HolidayResponse
from leaveflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid

    from leaveflow.repositories.base import LeaveRepository
    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.holiday import CreateHolidayRequest

logger = logging.getLogger(__name__)


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        organization_id=holiday.organization_id,
        country=holiday.country,
        date=holiday.date,
        name=holiday.name,
        is_recurring=holiday.is_recurring,
    )


def _occurrence_in_year(holiday: Holiday, year: int) -> date | None:
    try:
        return holiday.date.replace(year=year)
    except ValueError:
        # 29 February in a non-leap year.
        return None


# ---------------------------------------------------------------------------
# Calendar provider
# ---------------------------------------------------------------------------


def expand_holiday_dates(holidays: list[Holiday], start: date, end: date) -> set[date]:
    """Resolve holiday rows to concrete dates inside ``[start, end]``.

    Recurring holidays fall on the same month and day in every year of the
    span, starting from the year they were first observed.
    """
    dates: set[date] = set()
    for holiday in holidays:
        if not holiday.is_recurring:
            if start <= holiday.date <= end:
                dates.add(holiday.date)
            continue
        for year in range(max(start.year, holiday.date.year), end.year + 1):
            occurrence = _occurrence_in_year(holiday, year)
            if occurrence is not None and start <= occurrence <= end:
                dates.add(occurrence)
    return dates


async def get_holiday_dates(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    country: str,
    start: date,
    end: date,
) -> set[date]:
    """Return the organization's holiday dates for a country within ``[start, end]``."""
    holidays = await repo.list_holidays(organization_id, country=country.upper())
    return expand_holiday_dates(holidays, start, end)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


async def create_holiday(
    repo: LeaveRepository,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create an organization holiday."""
    holiday = Holiday(
        organization_id=auth.organization_id,
        country=payload.country.upper(),
        date=payload.date,
        name=payload.name,
        is_recurring=payload.is_recurring,
        created_by=auth.user_id,
    )
    await repo.add_holiday(holiday)

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await repo.commit()
    logger.info("Holiday %s created for %s on %s", holiday.name, holiday.country, holiday.date)
    return _build_holiday_response(holiday)


async def list_holidays(
    repo: LeaveRepository,
    organization_id: uuid.UUID,
    country: str | None = None,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List organization holidays with optional country and year filters."""
    holidays = await repo.list_holidays(organization_id, country=country.upper() if country else None, year=year)
    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays[offset : offset + limit]],
        total=len(holidays),
    )


async def delete_holiday(
    repo: LeaveRepository,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete an organization holiday."""
    holiday = await repo.get_holiday(auth.organization_id, holiday_id)
    if holiday is None:
        raise NotFoundError("Holiday not found")

    await write_audit_log(
        repo,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await repo.delete_holiday(holiday)
    await repo.commit()
