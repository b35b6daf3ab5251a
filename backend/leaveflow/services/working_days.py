from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from leaveflow.exceptions import InvalidRangeError

if TYPE_CHECKING:
    from collections.abc import Collection

_DEFAULT_WEEKEND = frozenset({6, 7})  # ISO Saturday, Sunday


def is_working_day(day: date, holidays: Collection[date], weekend_days: Collection[int] = _DEFAULT_WEEKEND) -> bool:
    """A date is a working day unless it is a weekend day or a holiday."""
    return day.isoweekday() not in weekend_days and day not in holidays


def count_working_days(
    start: date,
    end: date,
    holidays: Collection[date],
    weekend_days: Collection[int] = _DEFAULT_WEEKEND,
) -> int:
    """Count working days in the inclusive range ``[start, end]``.

    Every calendar date is visited once. A date counts unless its ISO weekday
    is in ``weekend_days`` or it appears in ``holidays``. The result may be 0
    (a weekend-only range); rejecting such a request is the caller's job.

    Raises ``InvalidRangeError`` when ``start`` is after ``end``.
    """
    if start > end:
        raise InvalidRangeError(f"start date {start} is after end date {end}")

    count = 0
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        if is_working_day(current, holidays, weekend_days):
            count += 1
        current += one_day
    return count
