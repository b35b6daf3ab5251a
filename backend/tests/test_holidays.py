"""Tests for the holiday calendar provider and the holiday CRUD API."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leaveflow.models.audit import AuditLog
from leaveflow.models.holiday import Holiday
from leaveflow.services.holiday import expand_holiday_dates, get_holiday_dates

from factories import ADMIN_ID, EMPLOYEE_ID, ORG_ID, auth_headers

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.repositories.memory import InMemoryLeaveRepository

ADMIN_HEADERS = auth_headers(ADMIN_ID, "admin")
EMPLOYEE_HEADERS = auth_headers(EMPLOYEE_ID)
BASE_URL = f"/organizations/{ORG_ID}/holidays"


def _holiday(day: date, *, recurring: bool = False, country: str = "US") -> Holiday:
    return Holiday(
        organization_id=ORG_ID,
        country=country,
        date=day,
        name="Holiday",
        is_recurring=recurring,
        created_by=ADMIN_ID,
    )


def _holiday_payload(day: str = "2025-07-04", name: str = "Independence Day", **extra: object) -> dict:
    return {"date": day, "name": name, "country": "US", **extra}


# ---------------------------------------------------------------------------
# Calendar provider
# ---------------------------------------------------------------------------


def test_one_off_holiday_inside_and_outside_range() -> None:
    holidays = [_holiday(date(2025, 1, 1)), _holiday(date(2026, 1, 1))]
    assert expand_holiday_dates(holidays, date(2024, 12, 30), date(2025, 1, 3)) == {date(2025, 1, 1)}


def test_recurring_holiday_repeats_every_year_of_span() -> None:
    holidays = [_holiday(date(2020, 12, 25), recurring=True)]
    dates = expand_holiday_dates(holidays, date(2024, 12, 1), date(2026, 1, 31))
    assert dates == {date(2024, 12, 25), date(2025, 12, 25)}


def test_recurring_holiday_not_before_first_observed_year() -> None:
    holidays = [_holiday(date(2025, 5, 1), recurring=True)]
    assert expand_holiday_dates(holidays, date(2024, 1, 1), date(2024, 12, 31)) == set()


def test_recurring_leap_day_skipped_in_common_years() -> None:
    holidays = [_holiday(date(2024, 2, 29), recurring=True)]
    assert expand_holiday_dates(holidays, date(2025, 1, 1), date(2028, 12, 31)) == {date(2028, 2, 29)}


async def test_get_holiday_dates_filters_by_country(memory_repo: InMemoryLeaveRepository) -> None:
    await memory_repo.add_holiday(_holiday(date(2025, 7, 4), country="US"))
    await memory_repo.add_holiday(_holiday(date(2025, 7, 14), country="FR"))

    dates = await get_holiday_dates(memory_repo, ORG_ID, "us", date(2025, 7, 1), date(2025, 7, 31))
    assert dates == {date(2025, 7, 4)}


# ---------------------------------------------------------------------------
# Create holiday
# ---------------------------------------------------------------------------


async def test_create_holiday(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_holiday_payload(), headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    data = resp.json()
    assert data["date"] == "2025-07-04"
    assert data["name"] == "Independence Day"
    assert data["organization_id"] == str(ORG_ID)
    assert data["country"] == "US"
    assert data["is_recurring"] is False


async def test_create_holiday_uppercases_country(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_holiday_payload(country="gb"), headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    assert resp.json()["country"] == "GB"


async def test_create_holiday_duplicate_date_409(async_client: AsyncClient) -> None:
    await async_client.post(BASE_URL, json=_holiday_payload(), headers=ADMIN_HEADERS)
    resp = await async_client.post(BASE_URL, json=_holiday_payload(name="Again"), headers=ADMIN_HEADERS)
    assert resp.status_code == 409


async def test_create_holiday_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_holiday_payload(), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_create_holiday_invalid_country_422(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json=_holiday_payload(country="USA"), headers=ADMIN_HEADERS)
    assert resp.status_code == 422


async def test_create_holiday_writes_audit_log(async_client: AsyncClient, db_session: AsyncSession) -> None:
    resp = await async_client.post(BASE_URL, json=_holiday_payload(), headers=ADMIN_HEADERS)
    holiday_id = uuid.UUID(resp.json()["id"])

    result = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == holiday_id))
    entries = list(result.scalars().all())
    assert len(entries) == 1
    assert entries[0].action == "CREATE"
    assert entries[0].entity_type == "HOLIDAY"
    assert entries[0].actor_id == ADMIN_ID


# ---------------------------------------------------------------------------
# List and delete
# ---------------------------------------------------------------------------


async def test_list_holidays_empty(async_client: AsyncClient) -> None:
    resp = await async_client.get(BASE_URL, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"items": [], "total": 0}


async def test_list_holidays_filters_by_year_and_country(async_client: AsyncClient) -> None:
    await async_client.post(BASE_URL, json=_holiday_payload("2025-07-04"), headers=ADMIN_HEADERS)
    await async_client.post(BASE_URL, json=_holiday_payload("2025-12-25", "Christmas Day"), headers=ADMIN_HEADERS)
    await async_client.post(BASE_URL, json=_holiday_payload("2026-01-01", "New Year"), headers=ADMIN_HEADERS)
    await async_client.post(
        BASE_URL, json=_holiday_payload("2025-07-14", "Bastille Day", country="FR"), headers=ADMIN_HEADERS
    )

    resp = await async_client.get(BASE_URL, params={"year": 2025, "country": "US"}, headers=EMPLOYEE_HEADERS)
    data = resp.json()
    assert data["total"] == 2
    assert [h["date"] for h in data["items"]] == ["2025-07-04", "2025-12-25"]


async def test_delete_holiday(async_client: AsyncClient) -> None:
    created = await async_client.post(BASE_URL, json=_holiday_payload(), headers=ADMIN_HEADERS)
    holiday_id = created.json()["id"]

    resp = await async_client.delete(f"{BASE_URL}/{holiday_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 204

    listed = await async_client.get(BASE_URL, headers=ADMIN_HEADERS)
    assert listed.json()["total"] == 0


async def test_delete_unknown_holiday_404(async_client: AsyncClient) -> None:
    resp = await async_client.delete(f"{BASE_URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_organization_mismatch_403(async_client: AsyncClient) -> None:
    other_headers = auth_headers(ADMIN_ID, "admin", organization_id=uuid.uuid4())
    resp = await async_client.get(BASE_URL, headers=other_headers)
    assert resp.status_code == 403
