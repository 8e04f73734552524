from __future__ import annotations

import calendar
from datetime import date, timedelta

from .enums import Frequency

_DAY_STEPS = {
    Frequency.DAILY.value: timedelta(days=1),
    Frequency.WEEKLY.value: timedelta(weeks=1),
}

_MONTH_STEPS = {
    Frequency.MONTHLY.value: 1,
    Frequency.QUARTERLY.value: 3,
    Frequency.YEARLY.value: 12,
}


def generate_occurrences(start: date, end: date, frequency: str) -> list[date]:
    """Due dates of a recurring task from ``start`` up to and including ``end``.

    Month-based frequencies are counted from ``start`` (the k-th date is
    ``start`` plus k steps of months) so a clamped day such as Jan 31 -> Feb 29
    does not drift the rest of the series. An unknown frequency yields only
    ``start``.
    """
    if start > end:
        return []

    key = str(frequency).lower()
    if key in _DAY_STEPS:
        step = _DAY_STEPS[key]
        dates = []
        cursor = start
        while cursor <= end:
            dates.append(cursor)
            cursor += step
        return dates

    if key in _MONTH_STEPS:
        months = _MONTH_STEPS[key]
        dates = []
        index = 0
        cursor = start
        while cursor <= end:
            dates.append(cursor)
            index += 1
            cursor = add_months(start, months * index)
        return dates

    return [start]


def add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
